import json

import pytest

from mediagen.config import ClientConfig
from mediagen.errors import DecodeError, ProtocolError, VendorError
from mediagen.models import MediaInput, TaskStatus
from mediagen.services.providers.jimeng_video import (
    ActionImitationRequest,
    JimengProvider,
    JimengVideoRequest,
    OmniHumanRequest,
)


class FakeVisual:
    """Stands in for the volcengine VisualService, recording every call."""

    def __init__(self, submit=None, results=()):
        self.submit_response = submit or {"code": 10000, "data": {"task_id": "jt-1"}}
        self.results = list(results)
        self.calls = []

    def _submit(self, name, body):
        self.calls.append((name, body))
        if isinstance(self.submit_response, Exception):
            raise self.submit_response
        return self.submit_response

    def _result(self, name, body):
        self.calls.append((name, body))
        return self.results.pop(0)

    def cv_sync2async_submit_task(self, body):
        return self._submit("sync2async_submit", body)

    def cv_sync2async_get_result(self, body):
        return self._result("sync2async_get_result", body)

    def cv_submit_task(self, body):
        return self._submit("submit", body)

    def cv_get_result(self, body):
        return self._result("get_result", body)


def make_provider(model, visual, clock=None):
    kwargs = {"sleep": clock.sleep, "clock": clock} if clock else {}
    return JimengProvider(ClientConfig(access_key_id="ak", secret_access_key="sk"), model, visual=visual, **kwargs)


def test_t2v_submit_body_and_task_id():
    visual = FakeVisual()
    task = make_provider("jimeng-t2v-3-pro", visual).submit(JimengVideoRequest(prompt="sunrise"))

    assert task.id == "jt-1"
    assert task.status is TaskStatus.PENDING
    name, body = visual.calls[0]
    assert name == "sync2async_submit"
    assert body == {"req_key": "jimeng_t2v_v30_pro", "prompt": "sunrise", "aspect_ratio": "16:9", "frames": 121}


def test_start_end_frames_keep_order():
    request = JimengVideoRequest(
        prompt="p",
        first_frame=MediaInput(url="https://img/start.png"),
        end_frame=MediaInput(url="https://img/end.png"),
        frames=241,
        seed=7,
    )
    body = request.build_body()
    assert body["image_urls"] == ["https://img/start.png", "https://img/end.png"]
    assert body["frames"] == 241
    assert body["seed"] == 7


def test_inline_frame_goes_to_base64_list():
    body = JimengVideoRequest(prompt="p", first_frame=MediaInput(url="u", data_base64="QUJD")).build_body()
    assert body["binary_data_base64"] == ["QUJD"]
    assert "image_urls" not in body


def test_submit_business_error():
    visual = FakeVisual(submit={"code": 50411, "message": "Pre Img Risk Not Pass"})
    with pytest.raises(VendorError, match="Pre Img Risk Not Pass") as excinfo:
        make_provider("jimeng-t2v-3-pro", visual).submit(JimengVideoRequest(prompt="p"))
    assert excinfo.value.code == 50411


def test_submit_sdk_exception_is_protocol_error():
    visual = FakeVisual(submit=Exception(b'{"ResponseMetadata": {"Error": {"Code": "SignatureDoesNotMatch"}}}'))
    with pytest.raises(ProtocolError, match="SignatureDoesNotMatch"):
        make_provider("jimeng-t2v-3-pro", visual).submit(JimengVideoRequest(prompt="p"))


def test_submit_without_task_id():
    visual = FakeVisual(submit={"code": 10000, "data": {}})
    with pytest.raises(DecodeError):
        make_provider("jimeng-t2v-3-pro", visual).submit(JimengVideoRequest(prompt="p"))


def test_query_business_error_fails_task_with_message():
    visual = FakeVisual(results=[{"code": 50500, "message": "Internal Error"}])
    task = make_provider("jimeng-t2v-3-pro", visual).query("jt-1")
    assert task.status is TaskStatus.FAILED
    assert task.error == "Internal Error"


def test_query_done():
    visual = FakeVisual(results=[{"code": 10000, "data": {"status": "done", "video_url": "https://cdn/v.mp4"}}])
    task = make_provider("jimeng-i2v-3-pro", visual).query("jt-1")
    assert task.status is TaskStatus.DONE
    assert task.result == "https://cdn/v.mp4"
    assert visual.calls[0] == ("sync2async_get_result", {"req_key": "jimeng_ti2v_v30_pro", "task_id": "jt-1"})


def test_action_imitation_query_sends_req_json():
    visual = FakeVisual(results=[{"code": 10000, "data": {"status": "generating"}}])
    task = make_provider("jimeng-action-imitation-v2", visual).query("jt-1")

    assert task.status is TaskStatus.RUNNING
    _, body = visual.calls[0]
    assert json.loads(body["req_json"])["aigc_meta"]


def test_action_imitation_body():
    body = ActionImitationRequest(
        image=MediaInput(url="https://img/p.png"), video_url="https://v/t.mp4", cut_first_second=False,
    ).build_body()
    assert body == {
        "video_url": "https://v/t.mp4",
        "image_urls": ["https://img/p.png"],
        "cut_result_first_second_switch": False,
    }


def test_omnihuman_uses_async_api():
    visual = FakeVisual()
    provider = make_provider("jimeng-omnihuman", visual)
    provider.submit(OmniHumanRequest(
        image=MediaInput(url="https://img/p.png"),
        audio_url="https://a/s.mp3",
        output_resolution=720,
        fast_mode=True,
    ))

    name, body = visual.calls[0]
    assert name == "submit"
    assert body["req_key"] == "jimeng_realman_avatar_picture_omni_v15"
    assert body["image_url"] == "https://img/p.png"
    assert body["output_resolution"] == 720
    assert body["pe_fast_mode"] is True


def test_wait_until_done(clock):
    visual = FakeVisual(results=[
        {"code": 10000, "data": {"status": "in_queue"}},
        {"code": 10000, "data": {"status": "generating"}},
        {"code": 10000, "data": {"status": "done", "video_url": "https://cdn/v.mp4"}},
    ])
    task = make_provider("jimeng-t2v-3-pro", visual, clock).wait("jt-1")
    assert task.result == "https://cdn/v.mp4"
    assert clock.sleeps == [5.0, 5.0]


def test_unknown_model():
    with pytest.raises(ValueError, match="Unknown Jimeng model"):
        make_provider("jimeng-nope", FakeVisual())


@pytest.mark.parametrize(
    "response",
    [
        {"code": 10000, "data": ["oops"]},
        {"code": 10000, "data": {"status": ["done"]}},
    ],
)
def test_query_wrong_shapes_are_decode_errors(response):
    visual = FakeVisual(results=[response])
    with pytest.raises(DecodeError):
        make_provider("jimeng-t2v-3-pro", visual).query("jt-1")


def test_submit_data_not_an_object():
    visual = FakeVisual(submit={"code": 10000, "data": "jt-1"})
    with pytest.raises(DecodeError):
        make_provider("jimeng-t2v-3-pro", visual).submit(JimengVideoRequest(prompt="p"))
