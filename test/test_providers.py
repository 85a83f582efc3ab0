import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from node_lab import build, validate_graph
from node_lab.execution import ExecutionConfig, get_preset
from node_lab.services import InlineImage, PollStatus
from node_lab.services.comfly import extract_task_id, map_to_comfly_size, normalize_image_task, normalize_video_task
from node_lab.services.expert import extract_json_block, parse_expert_output
from node_lab.services.gemini import (
    FLASH_IMAGE_MODEL,
    PRO_IMAGE_MODEL,
    build_image_request,
    extract_inline_image,
    select_image_model,
)
from node_lab.services.grsai import normalize_grsai_result, prepare_veo_payload
from node_lab.services.imgbb import parse_upload_response
from node_lab.util.errors import ProviderError


class TestVeoPayload:

    def test_text_only(self):
        payload = prepare_veo_payload("veo3.1-fast", "waves", [], "16:9")
        assert payload["firstFrameUrl"] == ""
        assert payload["lastFrameUrl"] == ""
        assert payload["urls"] is None
        assert payload["resolution"] == "720p"
        assert payload["durationSeconds"] == 6
        assert payload["personGeneration"] == "allow_all"

    def test_first_frame(self):
        payload = prepare_veo_payload("veo3.1-fast", "waves", ["a"], "9:16", "1080p", "8")
        assert payload["firstFrameUrl"] == "a"
        assert payload["lastFrameUrl"] == ""
        assert payload["resolution"] == "1080p"
        assert payload["durationSeconds"] == 8
        assert payload["personGeneration"] == "allow_adult"

    def test_first_and_last_frame(self):
        payload = prepare_veo_payload("veo3.1-fast", "waves", ["a", "b"], "16:9")
        assert (payload["firstFrameUrl"], payload["lastFrameUrl"]) == ("a", "b")
        assert payload["urls"] is None

    def test_reference_set_is_capped(self):
        payload = prepare_veo_payload("veo3.1-pro", "waves", ["a", "b", "c", "d"], "16:9")
        assert payload["urls"] == ["a", "b", "c"]
        assert payload["firstFrameUrl"] == ""

    def test_sora_body(self):
        payload = prepare_veo_payload("sora-2", "waves", ["a", "b"], "16:9", "1080p", "8")
        assert payload == {
            "model": "sora-2",
            "prompt": "waves",
            "aspectRatio": "16:9",
            "url": "a",
            "duration": 10,
            "size": "small",
            "webhook": "-1",
            "shutProgress": False,
        }


class TestGrsaiResult:

    def test_running(self):
        result = normalize_grsai_result({"status": "running", "progress": 42})
        assert result.status == PollStatus.RUNNING
        assert result.progress == 42

    def test_succeeded_with_results_list(self):
        result = normalize_grsai_result({"status": "succeeded", "results": [{"url": "https://g.test/1.png"}]})
        assert result.status == PollStatus.SUCCEEDED
        assert result.result_url == "https://g.test/1.png"
        assert result.progress == 100

    def test_failed_uses_caller_message(self):
        result = normalize_grsai_result({"status": "failed", "error": "whatever"}, failed_message="Violated/Failed")
        assert result.status == PollStatus.FAILED
        assert result.failure_reason == "Violated/Failed"

    def test_missing_data(self):
        assert normalize_grsai_result(None).status == PollStatus.RUNNING


class TestComfly:

    def test_size_table(self):
        assert map_to_comfly_size("16:9", "2K") == "1920x1080"
        assert map_to_comfly_size("3:4", None) == "768x1024"
        assert map_to_comfly_size("21:9", "1K") == "1024x1024"
        assert map_to_comfly_size("1:1", "8K") == "1024x1024"

    def test_image_task_running_keeps_progress_text(self):
        result = normalize_image_task({"data": {"status": "IN_PROGRESS", "progress": "35%"}})
        assert result.status == PollStatus.RUNNING
        assert result.progress == 35
        assert result.status_text == "35%"

    def test_image_task_nested_url(self):
        response = {"data": {"status": "SUCCESS", "data": {"data": [{"url": "https://c.test/x.png"}]}}}
        result = normalize_image_task(response)
        assert result.status == PollStatus.SUCCEEDED
        assert result.result_url == "https://c.test/x.png"

    def test_image_task_failure_reason(self):
        result = normalize_image_task({"status": "FAILURE", "fail_reason": "nsfw"})
        assert result.status == PollStatus.FAILED
        assert result.failure_reason == "nsfw"

    @pytest.mark.parametrize("data, url", [
        ({"output": "https://c.test/a.mp4"}, "https://c.test/a.mp4"),
        ({"url": "https://c.test/b.mp4"}, "https://c.test/b.mp4"),
        ({"outputs": ["https://c.test/c.mp4"]}, "https://c.test/c.mp4"),
    ])
    def test_video_task_url_sources(self, data, url):
        result = normalize_video_task({"status": "SUCCESS", "data": data})
        assert result.status == PollStatus.SUCCEEDED
        assert result.result_url == url

    def test_video_error_status_is_not_terminal(self):
        # only FAILED and FAILURE end a video task
        result = normalize_video_task({"status": "ERROR", "progress": "10%"})
        assert result.status == PollStatus.RUNNING

    def test_task_id_locations(self):
        assert extract_task_id({"task_id": "a"}) == "a"
        assert extract_task_id({"data": {"task_id": "b"}}) == "b"
        assert extract_task_id({"id": "c"}) == "c"
        assert extract_task_id({"data": {"id": "d"}}) == "d"
        assert extract_task_id({"data": []}) is None


class TestExpertParsing:

    def test_fenced_block(self):
        text = 'Sure!\n```json\n{"displaySummary": "s", "outputs": []}\n```\nbye'
        assert extract_json_block(text) == '{"displaySummary": "s", "outputs": []}'

    def test_bare_braces(self):
        assert extract_json_block('answer: {"a": {"b": 1}} done') == '{"a": {"b": 1}}'

    def test_no_json(self):
        assert extract_json_block("plain words") is None
        assert extract_json_block("") is None

    def test_parse_outputs(self):
        text = '{"displaySummary": "two shots", "outputs": [{"title": "A", "prompt": "pa"}, {"title": "B", "prompt": "pb"}]}'
        result = parse_expert_output(text)
        assert result.display_summary == "two shots"
        assert [(o.title, o.prompt) for o in result.outputs] == [("A", "pa"), ("B", "pb")]

    def test_unparseable_output_becomes_summary(self):
        result = parse_expert_output("{not json}")
        assert result.display_summary == "{not json}"
        assert result.outputs == []

    def test_wrong_shape_becomes_summary(self):
        result = parse_expert_output('{"outputs": "nope"}')
        assert result.outputs == []


class TestGemini:

    def test_model_selection(self):
        assert select_image_model("1K") == FLASH_IMAGE_MODEL
        assert select_image_model(None) == FLASH_IMAGE_MODEL
        assert select_image_model("2K") == PRO_IMAGE_MODEL
        assert select_image_model("4K") == PRO_IMAGE_MODEL

    def test_request_body(self):
        image = InlineImage("QUJD", "image/jpeg")
        model, body = build_image_request("a fox", "4:3", "4K", [image])
        assert model == PRO_IMAGE_MODEL
        assert body["contents"][0]["parts"] == [
            {"text": "a fox"},
            {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
        ]
        assert body["generationConfig"] == {
            "responseModalities": ["IMAGE"],
            "imageConfig": {"aspectRatio": "4:3", "imageSize": "4K"},
        }

    def test_flash_omits_image_size(self):
        _, body = build_image_request("a fox", "1:1")
        assert body["generationConfig"]["imageConfig"] == {"aspectRatio": "1:1"}

    def test_inline_image_extraction(self):
        response = {"candidates": [{"content": {"parts": [
            {"text": "here you go"},
            {"inlineData": {"mimeType": "image/webp", "data": "UklG"}},
        ]}}]}
        assert extract_inline_image(response) == "data:image/webp;base64,UklG"

    def test_no_image_part(self):
        with pytest.raises(ProviderError, match="no image data"):
            extract_inline_image({"candidates": [{"content": {"parts": [{"text": "refused"}]}}]})
        with pytest.raises(ProviderError, match="no content"):
            extract_inline_image({"candidates": []})


class TestImgBB:

    def test_medium_url_preferred(self):
        artifact = parse_upload_response({"success": True, "data": {
            "url": "https://i.test/full.png",
            "display_url": "https://i.test/display.png",
            "medium": {"url": "https://i.test/medium.png"},
        }})
        assert artifact.url == "https://i.test/full.png"
        assert artifact.display_url == "https://i.test/medium.png"

    def test_falls_back_to_full_url(self):
        artifact = parse_upload_response({"success": True, "data": {"url": "https://i.test/full.png"}})
        assert artifact.display_url == "https://i.test/full.png"

    def test_error_message(self):
        with pytest.raises(ProviderError, match="Invalid API v1 key"):
            parse_upload_response({"success": False, "error": {"message": "Invalid API v1 key"}})


class TestExecutionConfig:

    def test_defaults(self):
        config = ExecutionConfig.from_dict(None)
        assert config.grsai_poll_interval == 3.0
        assert config.comfly_video_poll_interval == 4.0
        assert config.max_poll_attempts is None
        assert config.max_expert_outputs == 16

    def test_preset_with_overrides(self):
        config = ExecutionConfig.from_dict({"preset": "fast", "max_expert_outputs": 4, "unknown": 1})
        assert config.grsai_poll_interval == 0
        assert config.max_poll_attempts == 50
        assert config.max_expert_outputs == 4

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            get_preset("turbo")


class TestValidateGraph:

    def graph(self, edges):
        return build({
            "nodes": [
                {"id": "a", "type": "inputText"},
                {"id": "b", "type": "aiExpert"},
                {"id": "c", "type": "aiImageGen"},
            ],
            "edges": edges,
        })

    def test_clean_graph(self):
        result = validate_graph(self.graph([{"id": "e1", "source": "a", "target": "b"}]))
        assert result == {"valid": True, "errors": [], "warnings": []}

    def test_cycle_is_a_warning(self):
        result = validate_graph(self.graph([
            {"id": "e1", "source": "b", "target": "c"},
            {"id": "e2", "source": "c", "target": "b"},
        ]))
        assert result["valid"] is True
        assert [w["error_type"] for w in result["warnings"]] == ["Cycle"]

    def test_self_loop_from_snapshot(self):
        result = validate_graph(self.graph([{"id": "e1", "source": "b", "target": "b"}]))
        assert [w["error_type"] for w in result["warnings"]] == ["SelfLoop"]

    def test_dangling_edge_is_an_error(self):
        result = validate_graph(self.graph([{"id": "e1", "source": "a", "target": "ghost"}]))
        assert result["valid"] is False
        assert result["errors"][0]["error_type"] == "DanglingEdge"

    def test_duplicate_edge(self):
        result = validate_graph(self.graph([
            {"id": "e1", "source": "a", "target": "b", "targetHandle": "text"},
            {"id": "e2", "source": "a", "target": "b", "targetHandle": "text"},
        ]))
        assert [w["error_type"] for w in result["warnings"]] == ["DuplicateEdge"]
        assert result["warnings"][0]["edge_id"] == "e2"

    def test_nested_content_wrapper(self):
        state = build({"content": {"nodes": [{"id": "a", "type": "inputText"}], "edges": []}})
        assert [n.id for n in state.nodes] == ["a"]
