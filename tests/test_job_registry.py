from __future__ import annotations

import json

import allure
import pytest

from core.exceptions import DeserializationError
from services.job_registry import Job, JobRegistry
from services.job_serializer import JobSerializer

pytestmark = [
    allure.epic("SQS Bridge"),
    allure.feature("Job Registry and Payloads"),
]


class GreetJob(Job):
    def __init__(self, name: str) -> None:
        self.name = name

    def handle(self, context) -> None:
        return None


def test_decorator_registers_by_class_name() -> None:
    registry = JobRegistry()
    registry.job()(GreetJob)

    assert "GreetJob" in registry
    job = registry.resolve("GreetJob")({"name": "ada"})
    assert isinstance(job, GreetJob)
    assert job.name == "ada"


def test_explicit_factory_receives_dependencies() -> None:
    registry = JobRegistry()
    mailer = object()

    class MailJob(Job):
        def __init__(self, mailer, to: str) -> None:
            self.mailer = mailer
            self.to = to

    registry.register("mail", lambda data: MailJob(mailer=mailer, **data))
    job = registry.resolve("mail")({"to": "a@example.com"})
    assert job.mailer is mailer
    assert job.to == "a@example.com"


def test_duplicate_registration_is_rejected() -> None:
    registry = JobRegistry()
    registry.register("x", lambda data: GreetJob(**data))
    with pytest.raises(ValueError):
        registry.register("x", lambda data: GreetJob(**data))


def test_unknown_job_is_a_deserialization_error() -> None:
    with pytest.raises(DeserializationError):
        JobRegistry().resolve("nope")


def test_load_modules_calls_register() -> None:
    registry = JobRegistry()
    registry.load_modules(["sample_jobs"])
    assert registry.names == ["sample.noop"]


def test_load_modules_requires_register_function() -> None:
    with pytest.raises(ValueError):
        JobRegistry().load_modules(["json"])


def test_serializer_produces_versioned_payload() -> None:
    body = JobSerializer().serialize("GreetJob", {"name": "ada"})
    raw = json.loads(body)

    assert raw["job"] == "GreetJob"
    assert raw["displayName"] == "GreetJob"
    assert raw["data"] == {"name": "ada"}
    assert raw["version"] == 1
    assert raw["uuid"]
    assert isinstance(raw["pushedAt"], int)


def test_serializer_reads_what_it_writes() -> None:
    serializer = JobSerializer()
    payload = serializer.deserialize(serializer.serialize("GreetJob", {"name": "ada"}).encode())
    assert payload.job == "GreetJob"
    assert payload.data == {"name": "ada"}


@pytest.mark.parametrize(
    "body",
    [
        b"\xff\xfe",
        b"not json",
        b"[1, 2]",
        b'{"job": "GreetJob"}',
        b'{"uuid": "u", "job": ""}',
        b'{"uuid": "u", "job": "GreetJob", "data": "oops"}',
    ],
)
def test_serializer_rejects_malformed_bodies(body: bytes) -> None:
    with pytest.raises(DeserializationError):
        JobSerializer().deserialize(body)


def test_serializer_rejects_version_mismatch() -> None:
    body = json.dumps({"uuid": "u", "job": "GreetJob", "version": 2}).encode()
    with pytest.raises(DeserializationError, match="version"):
        JobSerializer().deserialize(body)


def test_load_modules_skips_modules_already_loaded() -> None:
    registry = JobRegistry()
    registry.load_modules(["sample_jobs"])
    registry.load_modules(["sample_jobs"])
    assert registry.names == ["sample.noop"]


def test_failed_register_leaves_no_partial_jobs(monkeypatch) -> None:
    import sample_jobs

    def half_register(registry) -> None:
        registry.register("sample.first", lambda data: GreetJob(**data))
        raise RuntimeError("missing dependency")

    monkeypatch.setattr(sample_jobs, "register", half_register)
    registry = JobRegistry()
    with pytest.raises(RuntimeError):
        registry.load_modules(["sample_jobs"])
    assert len(registry) == 0

    monkeypatch.undo()
    registry.load_modules(["sample_jobs"])
    assert registry.names == ["sample.noop"]
