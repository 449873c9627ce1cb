from pathlib import Path

from fleetsim.models.domain import JobType
from fleetsim.services.job_types import JobTypeCatalog


def test_known_job_type_uses_configured_minutes():
    catalog = JobTypeCatalog([JobType(job="call", service_minutes=15)], default_minutes=10)

    assert catalog.service_minutes("call") == 15
    assert catalog.service_seconds("call") == 900
    assert catalog.has("call")


def test_unknown_job_type_falls_back_to_default():
    catalog = JobTypeCatalog([JobType(job="call", service_minutes=15)], default_minutes=10)

    assert not catalog.has("delivery")
    assert catalog.info("delivery") is None
    assert catalog.service_seconds("delivery") == 600


def test_from_csv_reads_rows_and_skips_bad_ones(tmp_path: Path):
    path = tmp_path / "job_type.csv"
    path.write_text(
        "\ufeffid,job,service_time\n1,call,15\n2,delivery,30\n3,broken,abc\n4,,5\n",
        encoding="utf-8",
    )

    catalog = JobTypeCatalog.from_csv(path, default_minutes=10)

    assert catalog.to_dict() == {"call": 15, "delivery": 30}
    assert catalog.info("delivery").job_type_id == "2"
    assert catalog.statistics() == {
        "total_types": 2,
        "average_service_minutes": 22.5,
        "default_service_minutes": 10,
    }


def test_from_csv_missing_or_malformed_file_is_empty(tmp_path: Path):
    missing = JobTypeCatalog.from_csv(tmp_path / "missing.csv", default_minutes=7)
    assert missing.all() == []
    assert missing.service_minutes("call") == 7

    path = tmp_path / "job_type.csv"
    path.write_text("name,minutes\ncall,15\n", encoding="utf-8")
    malformed = JobTypeCatalog.from_csv(path, default_minutes=7)
    assert malformed.all() == []
    assert malformed.statistics()["average_service_minutes"] == 0.0
