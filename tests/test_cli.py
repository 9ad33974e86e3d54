"""CLI tests: argument parsing, config overrides, and exit codes."""

import json

import pytest

from priocrawl import crawl
from priocrawl.crawler import CrawlConfig, DirectiveKind, save_config


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    # Keep pytest's own log capture handlers on the root logger.
    monkeypatch.setattr(crawl, "setup_logging", lambda output_dir, verbose: None)


class FakeDriver:
    instances = []

    def __init__(self, config, *, sink=None):
        self.config = config
        self.sink = sink
        FakeDriver.instances.append(self)

    def crawl(self):
        return {
            "state": "stopped",
            "stop_reason": "frontier_exhausted",
            "links_crawled": 1,
            "priority": {"highest_seen": 0, "lowest_seen": 0},
            "stats": {"fetched_ok": 1, "duration_seconds": 0.5},
        }


@pytest.fixture
def fake_driver(monkeypatch):
    FakeDriver.instances = []
    monkeypatch.setattr(crawl, "CrawlDriver", FakeDriver)
    return FakeDriver


class TestBuildConfig:

    def test_cli_values_override_defaults(self):
        args = crawl.parse_args(
            [
                "--seed", "http://example.com/",
                "--max_crawl_depth", "2",
                "--max_crawled_links", "50",
                "--max_crawl_time", "30",
                "--max_link_fetch_time", "0",
                "--user_agent", "Bot/1",
            ]
        )
        config = crawl.build_config(args)

        assert config.seed_url == "http://example.com/"
        assert config.max_crawl_depth == 2
        assert config.max_crawled_links == 50
        assert config.max_crawl_time == 30
        assert config.max_link_fetch_time == 0
        assert config.user_agent == "Bot/1"

    def test_priority_rules_split_on_last_equals(self):
        args = crawl.parse_args(
            [
                "--seed", "http://example.com/",
                "--priority_rule", r"\?page=\d+=--",
                "--priority_rule", "/docs/=7",
                "--priority_rule", "logout=drop",
            ]
        )
        rules = crawl.build_config(args).priority_rules

        assert [rule.pattern.pattern for rule in rules] == [r"\?page=\d+", "/docs/", "logout"]
        assert [rule.directive.kind for rule in rules] == [
            DirectiveKind.DECREMENT_FROM_MIN,
            DirectiveKind.FIXED,
            DirectiveKind.DROP,
        ]

    def test_cli_rules_follow_config_rules(self, tmp_path):
        path = tmp_path / "crawl.json"
        save_config(
            CrawlConfig(
                seed_url="http://example.com/",
                max_crawled_links=9,
                priority_rules=[{"pattern": "first", "priority": 1}],
            ),
            path,
        )
        args = crawl.parse_args(["--config", str(path), "--priority_rule", "second=++"])
        config = crawl.build_config(args)

        assert config.seed_url == "http://example.com/"
        assert config.max_crawled_links == 9
        assert [rule.pattern.pattern for rule in config.priority_rules] == ["first", "second"]

    @pytest.mark.parametrize("rule", ["no-equals", "=5", "/x=sometimes"])
    def test_bad_priority_rule_raises(self, rule):
        args = crawl.parse_args(["--seed", "http://example.com/", "--priority_rule", rule])
        with pytest.raises(ValueError):
            crawl.build_config(args)

    def test_missing_seed_raises(self):
        with pytest.raises(ValueError):
            crawl.build_config(crawl.parse_args([]))


class TestMain:

    def test_success_prints_summary(self, fake_driver, capsys):
        code = crawl.main(["--seed", "http://example.com/", "--print_stats_json"])

        out = capsys.readouterr().out
        assert code == 0
        assert "stop_reason: frontier_exhausted" in out
        assert "fetched_ok: 1" in out
        assert json.dumps({"duration_seconds": 0.5, "fetched_ok": 1}, indent=2, sort_keys=True) in out
        assert fake_driver.instances[0].config.seed_url == "http://example.com/"

    def test_output_dir_uses_storage_sink(self, fake_driver, tmp_path, capsys):
        code = crawl.main(["--seed", "http://example.com/", "--output_dir", str(tmp_path / "out")])

        assert code == 0
        assert isinstance(fake_driver.instances[0].sink, crawl.Storage)
        assert f"records: {tmp_path / 'out' / 'records.jsonl'}" in capsys.readouterr().out

    def test_without_output_dir_records_are_logged(self, fake_driver):
        crawl.main(["--seed", "http://example.com/"])
        assert isinstance(fake_driver.instances[0].sink, crawl.LoggingSink)

    def test_bad_config_exits_2(self, fake_driver):
        assert crawl.main(["--max_crawled_links", "5"]) == 2
        assert fake_driver.instances == []

    def test_crawl_failure_exits_1(self, monkeypatch):
        class BrokenDriver(FakeDriver):
            def crawl(self):
                raise RuntimeError("boom")

        monkeypatch.setattr(crawl, "CrawlDriver", BrokenDriver)
        assert crawl.main(["--seed", "http://example.com/"]) == 1

    def test_interrupt_exits_130(self, monkeypatch):
        class InterruptedDriver(FakeDriver):
            def crawl(self):
                raise KeyboardInterrupt

        monkeypatch.setattr(crawl, "CrawlDriver", InterruptedDriver)
        assert crawl.main(["--seed", "http://example.com/"]) == 130
