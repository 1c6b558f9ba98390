"""Tests for the speed provider."""

import pytest

from conftest import FakeClock, RecordingRunner

from dev_statusline import background, cli, speed, view
from dev_statusline.background import DetachedProcessRunner
from dev_statusline.cache import FileCacheStore, MemoryCacheStore
from dev_statusline.lock import MemoryLock
from dev_statusline.models.cache import CacheRecord

SIMPLE_OUTPUT = "Ping: 12.3 ms\nDownload: 93.61 Mbit/s\nUpload: 11.02 Mbit/s"


def _provider(store, lock, runner, clock, identity="wifi:home", tool="/usr/bin/speedtest-cli"):
    async def fake_identity() -> str:
        return identity

    provider = speed.SpeedProvider(
        store,
        lock,
        runner,
        max_age=3600,
        lock_timeout=120,
        test_timeout=60,
        clock=clock,
        identity=fake_identity,
    )
    provider.find_speedtest = lambda: tool
    return provider


def _cache(store: MemoryCacheStore, clock: FakeClock, payload: str, fingerprint="wifi:home", age=0):
    store.write(
        speed.SPEED_KEY,
        CacheRecord(written_at=clock() - age, fingerprint=fingerprint, payload=payload),
    )


def test_parse_speedtest_output() -> None:
    result = speed.parse_speedtest_output(SIMPLE_OUTPUT)
    assert result == speed.SpeedResult(93.61, 11.02)
    assert result.display() == "↓ 94Mbps ↑ 11Mbps"


def test_parse_speedtest_output_missing_label() -> None:
    assert speed.parse_speedtest_output("Ping: 12 ms\nDownload: 10 Mbit/s") is None
    assert speed.parse_speedtest_output("") is None


def test_parse_speedtest_output_unparsable_value_is_zero() -> None:
    result = speed.parse_speedtest_output("Download: n/a\nUpload: 5.4 Mbit/s")
    assert result == speed.SpeedResult(0.0, 5.4)


def test_parse_speedtest_output_empty_value_keeps_next_label() -> None:
    result = speed.parse_speedtest_output("Ping: 9 ms\nDownload:\nUpload: 5.4 Mbit/s")
    assert result == speed.SpeedResult(0.0, 5.4)


@pytest.mark.asyncio
async def test_corrupt_cache_still_starts_refresh(tmp_path, lock, runner, clock) -> None:
    (tmp_path / ".statusline_speedtest_cache").write_text(
        "\u00b2\nwifi:home\n↓ 1Mbps ↑ 1Mbps\n", encoding="utf-8"
    )
    provider = _provider(FileCacheStore(str(tmp_path)), lock, runner, clock)

    assert await provider.render() == view.SPEED_PLACEHOLDER
    assert runner.jobs == [speed.JOB_SPEEDTEST]


@pytest.mark.asyncio
async def test_fresh_cache_is_returned_without_spawning(store, lock, runner, clock) -> None:
    _cache(store, clock, "↓ 94Mbps ↑ 11Mbps", age=600)
    provider = _provider(store, lock, runner, clock)

    assert await provider.render() == "↓ 94Mbps ↑ 11Mbps"
    assert runner.jobs == []
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_network_change_triggers_refresh(store, lock, runner, clock) -> None:
    _cache(store, clock, "↓ 94Mbps ↑ 11Mbps", fingerprint="wifi:home", age=60)
    provider = _provider(store, lock, runner, clock, identity="wifi:cafe")

    assert await provider.render() == "↓ 94Mbps ↑ 11Mbps"
    assert runner.jobs == [speed.JOB_SPEEDTEST]
    assert lock.age(speed.SPEED_KEY) == 0


@pytest.mark.asyncio
async def test_stale_cache_spawns_one_job(store, lock, runner, clock) -> None:
    _cache(store, clock, "↓ 94Mbps ↑ 11Mbps", age=3600)
    provider = _provider(store, lock, runner, clock)

    assert await provider.render() == "↓ 94Mbps ↑ 11Mbps"
    second = await provider.render()

    assert second == "↓ 94Mbps ↑ 11Mbps (testing...)"
    assert runner.jobs == [speed.JOB_SPEEDTEST]


@pytest.mark.asyncio
async def test_no_cache_shows_placeholder(store, lock, runner, clock) -> None:
    provider = _provider(store, lock, runner, clock)
    assert await provider.render() == view.SPEED_PLACEHOLDER
    assert await provider.render() == f"{view.SPEED_PLACEHOLDER} (testing...)"


@pytest.mark.asyncio
async def test_stale_lock_is_taken_over(store, lock, runner, clock) -> None:
    lock.markers[speed.SPEED_KEY] = clock() - 121
    provider = _provider(store, lock, runner, clock)

    assert await provider.render() == view.SPEED_PLACEHOLDER
    assert runner.jobs == [speed.JOB_SPEEDTEST]


@pytest.mark.asyncio
async def test_missing_tool_spawns_install(monkeypatch, store, lock, runner, clock) -> None:
    monkeypatch.setattr(speed, "find_installer", lambda: ["/usr/bin/pip3", "install", "speedtest-cli"])
    provider = _provider(store, lock, runner, clock, tool=None)

    assert await provider.render() == f"{view.SPEED_PLACEHOLDER} (installing...)"
    assert runner.jobs == [speed.JOB_INSTALL]


@pytest.mark.asyncio
async def test_missing_tool_without_installer(monkeypatch, store, lock, runner, clock) -> None:
    monkeypatch.setattr(speed, "find_installer", lambda: None)
    provider = _provider(store, lock, runner, clock, tool=None)

    assert await provider.render() == f"{view.SPEED_PLACEHOLDER} (unavailable)"
    assert runner.jobs == []
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_spawn_failure_releases_lock(store, lock, clock) -> None:
    provider = _provider(store, lock, RecordingRunner(fail=True), clock)

    assert await provider.render() == view.SPEED_PLACEHOLDER
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_job_measures_caches_and_releases(monkeypatch, store, lock, runner, clock) -> None:
    calls: list[list[str]] = []

    async def fake_run_cmd(cmd, timeout=10, cwd=None):
        calls.append(list(cmd))
        return 0, SIMPLE_OUTPUT, ""

    monkeypatch.setattr(cli, "run_cmd", fake_run_cmd)
    provider = _provider(store, lock, runner, clock)
    assert lock.try_acquire(speed.SPEED_KEY, 120)

    assert await provider.run_job(speed.JOB_SPEEDTEST)

    assert calls == [["/usr/bin/speedtest-cli", "--simple", "--timeout", "60"]]
    record = store.read(speed.SPEED_KEY)
    assert record.payload == "↓ 94Mbps ↑ 11Mbps"
    assert record.fingerprint == "wifi:home"
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_failed_job_keeps_cache_and_releases(monkeypatch, store, lock, runner, clock) -> None:
    _cache(store, clock, "↓ 50Mbps ↑ 5Mbps", age=4000)

    async def fake_run_cmd(cmd, timeout=10, cwd=None):
        return 124, "", "timeout"

    monkeypatch.setattr(cli, "run_cmd", fake_run_cmd)
    provider = _provider(store, lock, runner, clock)
    lock.try_acquire(speed.SPEED_KEY, 120)

    assert not await provider.run_job(speed.JOB_SPEEDTEST)
    assert store.read(speed.SPEED_KEY).payload == "↓ 50Mbps ↑ 5Mbps"
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_unknown_job_releases_lock(store, lock, runner, clock) -> None:
    provider = _provider(store, lock, runner, clock)
    lock.try_acquire(speed.SPEED_KEY, 120)
    assert not await provider.run_job("bogus")
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_force_check_reports_results(monkeypatch, store, lock, runner, clock) -> None:
    _cache(store, clock, "↓ 1Mbps ↑ 1Mbps", age=10)
    lock.try_acquire(speed.SPEED_KEY, 120)

    async def fake_run_cmd(cmd, timeout=10, cwd=None):
        return 0, SIMPLE_OUTPUT, ""

    monkeypatch.setattr(cli, "run_cmd", fake_run_cmd)
    rc, lines = await _provider(store, lock, runner, clock).force_check()

    assert rc == 0
    assert "Speed test results:" in lines
    assert "Status line will show: ↓ 94Mbps ↑ 11Mbps" in lines
    assert store.read(speed.SPEED_KEY).payload == "↓ 94Mbps ↑ 11Mbps"
    assert lock.age(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_force_check_failure(monkeypatch, store, lock, runner, clock) -> None:
    async def fake_run_cmd(cmd, timeout=10, cwd=None):
        return 1, "", "ERROR: Unable to connect to servers"

    monkeypatch.setattr(cli, "run_cmd", fake_run_cmd)
    rc, lines = await _provider(store, lock, runner, clock).force_check()

    assert rc == 1
    assert "Error: Speed test failed" in lines
    assert "Error details: ERROR: Unable to connect to servers" in lines
    assert store.read(speed.SPEED_KEY) is None


@pytest.mark.asyncio
async def test_force_check_without_tool_or_installer(monkeypatch, store, lock, runner, clock) -> None:
    monkeypatch.setattr(speed, "find_installer", lambda: None)
    rc, lines = await _provider(store, lock, runner, clock, tool=None).force_check()
    assert rc == 1
    assert lines[0].startswith("Error: speedtest-cli not found")


def test_detached_runner_command() -> None:
    runner = DetachedProcessRunner(python="/usr/bin/python3")
    assert runner.command_for("speedtest") == [
        "/usr/bin/python3",
        "-m",
        "dev_statusline.main",
        "worker",
        "speedtest",
    ]


def test_detached_runner_spawns_new_session(monkeypatch) -> None:
    seen: dict = {}

    def fake_popen(cmd, **kwargs):
        seen["cmd"] = cmd
        seen.update(kwargs)

    monkeypatch.setattr(background.subprocess, "Popen", fake_popen)
    DetachedProcessRunner(python="py").spawn("install")

    assert seen["cmd"][-2:] == ["worker", "install"]
    assert seen["start_new_session"] is True
