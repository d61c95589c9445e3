import logging

from budget_tracker import config


def test_base_currency_falls_back_for_bad_values(monkeypatch):
    monkeypatch.setattr(config, 'BASE_CURRENCY', 'EUR')
    assert config.get_base_currency() == 'EUR'
    monkeypatch.setattr(config, 'BASE_CURRENCY', 'EURO')
    assert config.get_base_currency() == 'USD'
    monkeypatch.setattr(config, 'BASE_CURRENCY', 'E1R')
    assert config.get_base_currency() == 'USD'


def test_ensure_data_directories(monkeypatch, tmp_path):
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path / 'data')
    monkeypatch.setattr(config, 'SNAPSHOTS_DIR', tmp_path / 'data' / 'snapshots')
    config.ensure_data_directories()
    assert (tmp_path / 'data' / 'snapshots').is_dir()


def test_configure_logging_resolves_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, 'basicConfig', lambda **kwargs: calls.append(kwargs))
    config.configure_logging('debug')
    config.configure_logging('nonsense')
    assert calls[0]['level'] == logging.DEBUG
    assert calls[1]['level'] == logging.WARNING
    assert calls[0]['format'] == config.LOG_FORMAT
