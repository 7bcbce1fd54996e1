import pytest

from mediagen.models import Task, TaskStatus, normalize_status
from mediagen.services.providers.ark_video import ARK_STATUS_TABLE
from mediagen.services.providers.jimeng_video import JIMENG_STATUS_TABLE
from mediagen.services.providers.topview_avatar import TOPVIEW_STATUS_TABLE


@pytest.mark.parametrize(
    "table, vendor, expected",
    [
        (ARK_STATUS_TABLE, "queued", TaskStatus.PENDING),
        (ARK_STATUS_TABLE, "running", TaskStatus.RUNNING),
        (ARK_STATUS_TABLE, "succeeded", TaskStatus.DONE),
        (ARK_STATUS_TABLE, "failed", TaskStatus.FAILED),
        (ARK_STATUS_TABLE, "cancelled", TaskStatus.FAILED),
        (ARK_STATUS_TABLE, "expired", TaskStatus.FAILED),
        (JIMENG_STATUS_TABLE, "in_queue", TaskStatus.PENDING),
        (JIMENG_STATUS_TABLE, "generating", TaskStatus.RUNNING),
        (JIMENG_STATUS_TABLE, "done", TaskStatus.DONE),
        (JIMENG_STATUS_TABLE, "not_found", TaskStatus.FAILED),
        (JIMENG_STATUS_TABLE, "expired", TaskStatus.FAILED),
        (TOPVIEW_STATUS_TABLE, "waiting", TaskStatus.PENDING),
        (TOPVIEW_STATUS_TABLE, "processing", TaskStatus.RUNNING),
        (TOPVIEW_STATUS_TABLE, "success", TaskStatus.DONE),
        (TOPVIEW_STATUS_TABLE, "error", TaskStatus.FAILED),
    ],
)
def test_vendor_status_tables(table, vendor, expected):
    assert normalize_status(vendor, table) is expected


@pytest.mark.parametrize("vendor", ["", None, "warming_up"])
def test_unknown_or_empty_status_is_pending(vendor):
    assert normalize_status(vendor, ARK_STATUS_TABLE) is TaskStatus.PENDING


def test_status_is_case_insensitive():
    assert normalize_status("  SUCCEEDED ", ARK_STATUS_TABLE) is TaskStatus.DONE


def test_terminal_states():
    assert TaskStatus.DONE.is_terminal
    assert TaskStatus.FAILED.is_terminal
    assert not TaskStatus.PENDING.is_terminal
    assert not TaskStatus.RUNNING.is_terminal


def test_task_constructors():
    done = Task.done("t1", "https://x/v.mp4", "succeeded")
    assert done.status is TaskStatus.DONE
    assert done.result == "https://x/v.mp4"
    assert done.last_status == "succeeded"

    failed = Task.failed("t2", "boom")
    assert failed.is_terminal
    assert failed.error == "boom"
    assert failed.last_status == "failed"
