import dataclasses

import pytest

from imagefetcher.workflows import image_config
from imagefetcher.workflows.image_config import MIB, ImageFetchConfig


def test_defaults():
    config = ImageFetchConfig()
    assert config.max_concurrent_downloads == 5
    assert config.timeout_seconds == 10
    assert config.max_retries == 3
    assert config.max_bytes_per_image == 100 * MIB
    assert config.max_bytes_per_session == 500 * MIB


def test_config_is_immutable():
    config = ImageFetchConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.max_retries = 9  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_concurrent_downloads": 0},
        {"timeout_seconds": 0},
        {"max_retries": -1},
        {"max_bytes_per_image": 0},
        {"max_bytes_per_session": -5},
    ],
)
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        ImageFetchConfig(**kwargs)


def test_with_helpers_return_copies_and_ignore_invalid_input():
    base = ImageFetchConfig()
    assert base.with_timeout_seconds(15).timeout_seconds == 15
    assert base.with_max_retries(0).max_retries == 0
    assert base.timeout_seconds == 10
    assert base.with_timeout_seconds(0) is base
    assert base.with_max_retries(-2) is base


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setattr(image_config, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setenv("IMAGEFETCH_MAX_CONCURRENT", "2")
    monkeypatch.setenv("IMAGEFETCH_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("IMAGEFETCH_MAX_RETRIES", "0")
    monkeypatch.setenv("IMAGEFETCH_MAX_BYTES_PER_IMAGE", "1024")
    monkeypatch.setenv("IMAGEFETCH_MAX_BYTES_PER_SESSION", "4096")

    config = ImageFetchConfig.from_env()

    assert config.max_concurrent_downloads == 2
    assert config.timeout_seconds == 2.5
    assert config.max_retries == 0
    assert config.max_bytes_per_image == 1024
    assert config.max_bytes_per_session == 4096


def test_from_env_falls_back_on_bad_values(monkeypatch):
    monkeypatch.setattr(image_config, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setenv("IMAGEFETCH_MAX_CONCURRENT", "lots")
    monkeypatch.setenv("IMAGEFETCH_TIMEOUT_SECONDS", "-1")
    monkeypatch.setenv("IMAGEFETCH_MAX_RETRIES", "-3")
    monkeypatch.delenv("IMAGEFETCH_MAX_BYTES_PER_IMAGE", raising=False)
    monkeypatch.setenv("IMAGEFETCH_MAX_BYTES_PER_SESSION", "")

    assert ImageFetchConfig.from_env() == ImageFetchConfig()
