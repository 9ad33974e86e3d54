"""Storage and StatsCollector tests."""

import json

import pytest

from priocrawl.crawler import (
    CrawlConfig,
    EnqueueResult,
    EnqueueStatus,
    ExtractionResult,
    FetchResult,
    StatsCollector,
    Storage,
)


# ============================================================================
# Storage
# ============================================================================

class TestStorage:

    @pytest.fixture
    def storage(self, tmp_path):
        return Storage(tmp_path / "run")

    def test_layout_is_created(self, storage):
        assert storage.output_dir.is_dir()
        assert storage.manifests_dir.is_dir()
        assert storage.logs_dir.is_dir()
        assert set(storage.paths) == {"output_dir", "records", "crawl_config", "crawl_stats", "log_dir"}

    def test_emit_appends_jsonl(self, storage):
        storage.emit("a@example.com")
        storage.emit("ünïcode@example.com")

        lines = storage.records_path.read_text(encoding="utf-8").splitlines()
        payloads = [json.loads(line) for line in lines]

        assert [p["record"] for p in payloads] == ["a@example.com", "ünïcode@example.com"]
        assert all("emitted_at" in p for p in payloads)
        assert storage.records_written == 2

    def test_save_crawl_config_from_object_and_mapping(self, storage):
        storage.save_crawl_config(CrawlConfig(seed_url="http://example.com/"))
        saved = json.loads(storage.crawl_config_path.read_text(encoding="utf-8"))
        assert saved["seed_url"] == "http://example.com/"

        storage.save_crawl_config({"seed_url": "http://other.com/"})
        saved = json.loads(storage.crawl_config_path.read_text(encoding="utf-8"))
        assert saved == {"seed_url": "http://other.com/"}

    def test_save_crawl_config_rejects_unknown_type(self, storage):
        with pytest.raises(TypeError):
            storage.save_crawl_config(42)

    def test_save_crawl_stats_leaves_no_temp_files(self, storage):
        storage.save_crawl_stats({"fetched_ok": 3})

        assert json.loads(storage.crawl_stats_path.read_text(encoding="utf-8")) == {"fetched_ok": 3}
        assert [p.name for p in storage.manifests_dir.iterdir()] == ["crawl_stats.json"]


# ============================================================================
# StatsCollector
# ============================================================================

class TestStatsCollector:

    def test_enqueue_outcomes(self):
        stats = StatsCollector()
        stats.record_enqueue_many(
            [
                EnqueueResult(EnqueueStatus.ENQUEUED),
                EnqueueResult(EnqueueStatus.SKIPPED_SEEN),
                EnqueueResult(EnqueueStatus.SKIPPED_DEPTH),
                EnqueueResult(EnqueueStatus.SKIPPED_DROPPED),
            ]
        )
        stats.record_enqueue(EnqueueStatus.SKIPPED_INVALID_URL)

        payload = stats.to_json()
        assert payload["frontier_enqueued"] == 1
        assert payload["frontier_skipped_seen"] == 1
        assert payload["frontier_skipped_depth"] == 1
        assert payload["frontier_skipped_dropped"] == 1
        assert payload["frontier"]["extra_status_counts"] == {"skipped_invalid_url": 1}

    def test_fetch_results(self):
        stats = StatsCollector()
        stats.record_fetch(
            FetchResult("http://a/", "http://a/", 200, "text/html", b"12345", elapsed_ms=10)
        )
        stats.record_fetch(
            FetchResult("http://b/", None, None, None, None, elapsed_ms=30, error="Timeout: slow")
        )

        payload = stats.to_json()
        assert payload["fetched_ok"] == 1
        assert payload["fetched_error"] == 1
        assert payload["fetch"]["status_code_counts"] == {"200": 1}
        assert payload["fetch"]["error_type_counts"] == {"Timeout": 1}
        assert payload["fetch"]["elapsed_ms_avg"] == 20
        assert payload["fetch"]["bytes_total"] == 5

    def test_extraction_results(self):
        stats = StatsCollector()
        stats.record_extraction(
            ExtractionResult("text/html", records=["a", "b"], duplicate_records=3, rejected_links=2)
        )
        stats.record_extraction(ExtractionResult(None, failed_extractors=1))
        stats.record_extraction_error()

        payload = stats.to_json()
        assert payload["records_emitted"] == 2
        assert payload["records_duplicate"] == 3
        assert payload["extraction_errors"] == 2
        assert payload["extraction"] == {
            "by_mime_type": {"text/html": 1, "unknown": 1},
            "links_rejected": 2,
        }

    def test_stop_and_finish(self):
        stats = StatsCollector()
        stats.record_stop("max_crawled_links")
        stats.finish()

        payload = stats.to_json()
        assert payload["stop_reason"] == "max_crawled_links"
        assert payload["finished_at"] is not None
        assert payload["duration_seconds"] >= 0
        assert stats.core().finished_at == payload["finished_at"]
