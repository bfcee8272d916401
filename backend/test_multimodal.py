"""
Tests for the Multimodal Merger: modality counting, retry policy,
metadata and the combined call.
"""
import asyncio

import pytest

from conftest import ONE_ROOM, TWO_RECTANGLES, TWO_ROOMS, FakeLLM, FakeVision, data_url
from services.errors import AnalysisError, MultimodalMergeError, ParseError, RemoteCallError
from services.multimodal import (
    MultimodalProcessor,
    RetryPolicy,
    compute_metadata,
    contribution_weights,
    count_modalities,
    should_merge,
)
from services.vision_analyzer import VisionAnalyzer


def _processor(llm, vision=None):
    return MultimodalProcessor(llm, VisionAnalyzer(vision or FakeVision(TWO_RECTANGLES)))


# ============================================================================
# Modality counting
# ============================================================================

class TestShouldMerge:
    def test_text_only_does_not_merge(self):
        assert count_modalities({"text": "a house"}) == 0
        assert should_merge({"text": "a house"}) is False

    def test_single_modality_does_not_merge(self):
        assert should_merge({"text": "a house", "sketch": data_url()}) is False

    def test_two_modalities_merge(self):
        assert should_merge({"sketch": data_url(), "speech": "two bedrooms"}) is True

    def test_empty_values_do_not_count(self):
        assert count_modalities({"sketch": "", "speech": None, "photo": data_url()}) == 1


# ============================================================================
# Metadata
# ============================================================================

class TestMetadata:
    def test_weights_normalized_over_present(self):
        weights = contribution_weights({"text": True, "sketch": True})
        assert weights["text"] == pytest.approx(0.4 / 0.7)
        assert weights["sketch"] == pytest.approx(0.3 / 0.7)
        assert weights["speech"] == 0 and weights["photo"] == 0
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_no_modalities_all_zero(self):
        assert set(contribution_weights({}).values()) == {0.0}

    def test_statistics(self):
        model = {
            "rooms": [
                {"name": "a", "width": 4, "length": 4, "x": 0, "z": 0},
                {"name": "b", "width": 2, "length": 8, "x": 4, "z": 0},
                {"name": "c", "width": 1, "length": 1, "x": 0, "z": 4},
            ],
            "windows": [{}],
            "doors": [{}, {}],
        }
        metadata = compute_metadata(model, {"text": True})
        stats = metadata["modelStatistics"]
        assert (stats["roomCount"], stats["windowCount"], stats["doorCount"]) == (3, 1, 2)
        assert stats["totalArea"] == pytest.approx(33)
        assert stats["largestRoom"] == {"name": "a", "area": 16}
        assert metadata["suggestedStyle"] == "modern"
        assert metadata["inputModalities"] == {
            "text": True, "sketch": False, "speech": False, "photo": False,
        }

    def test_photo_style_wins(self):
        photo = {"architecturalFeatures": {"style": "victorian"}}
        assert compute_metadata({"rooms": []}, {}, photo)["suggestedStyle"] == "victorian"
        assert compute_metadata({"rooms": []}, {})["modelStatistics"]["largestRoom"] is None


# ============================================================================
# Retry policy
# ============================================================================

class TestRetryPolicy:
    def _policy(self, max_attempts=2):
        return RetryPolicy(predicate=lambda r: r == "good", amend=lambda p: p + "!",
                           max_attempts=max_attempts)

    def test_accepted_first_result_skips_retry(self):
        calls = []

        async def attempt(prompt, temperature):
            calls.append(prompt)
            return "good"

        assert asyncio.run(self._policy().run(attempt, "p", "good")) == "good"
        assert calls == []

    def test_retry_improves(self):
        calls = []

        async def attempt(prompt, temperature):
            calls.append((prompt, temperature))
            return "good"

        assert asyncio.run(self._policy().run(attempt, "p", "bad")) == "good"
        assert calls == [("p!", 0.8)]

    def test_retry_that_does_not_help_keeps_first(self):
        async def attempt(prompt, temperature):
            return "worse"

        assert asyncio.run(self._policy(max_attempts=3).run(attempt, "p", "bad")) == "bad"

    def test_failed_retry_keeps_first(self):
        async def attempt(prompt, temperature):
            raise ParseError("nope", raw="")

        assert asyncio.run(self._policy().run(attempt, "p", "bad")) == "bad"


# ============================================================================
# MultimodalProcessor
# ============================================================================

class TestMultimodalProcessor:
    def test_single_room_reply_is_retried(self):
        llm = FakeLLM(ONE_ROOM, TWO_ROOMS)
        merged = asyncio.run(_processor(llm).merge({"sketch": data_url(), "speech": "two rooms"}))
        assert [r["name"] for r in merged["modelData"]["rooms"]] == ["a", "b"]
        assert len(llm.calls) == 2
        assert llm.calls[1]["temperature"] == 0.8
        assert "at least 2 rooms" in llm.calls[1]["user_prompt"]
        # sketch-derived structure is preserved: no synthesized doors
        assert merged["modelData"]["doors"] == []
        assert merged["metadata"]["modelStatistics"]["roomCount"] == 2

    def test_retry_still_single_room_keeps_first(self):
        llm = FakeLLM(ONE_ROOM, ONE_ROOM)
        merged = asyncio.run(_processor(llm).merge({"sketch": data_url(), "photo": data_url()}))
        assert [r["name"] for r in merged["modelData"]["rooms"]] == ["studio"]

    def test_no_retry_without_sketch_rooms(self):
        llm = FakeLLM(TWO_ROOMS)
        merged = asyncio.run(_processor(llm).merge({"speech": "two rooms", "photo": data_url()}))
        assert len(llm.calls) == 1
        # no sketch analysis, so connected rooms get doors
        assert len(merged["modelData"]["doors"]) == 1

    def test_prompt_contains_every_modality(self):
        llm = FakeLLM(TWO_ROOMS)
        asyncio.run(_processor(llm).merge({
            "text": "cosy", "speech": "two rooms", "sketch": data_url(), "photo": data_url(),
        }))
        prompt = llm.calls[0]["user_prompt"]
        for heading in ("TEXT DESCRIPTION:", "VOICE INPUT:", "SKETCH ANALYSIS:", "PHOTO ANALYSIS:"):
            assert heading in prompt

    def test_parse_failure_returns_error_model(self):
        llm = FakeLLM("A lovely two-room cottage with a view.")
        merged = asyncio.run(_processor(llm).merge({"sketch": data_url(), "speech": "cottage"}))
        assert merged["modelData"]["error"] == "Failed to parse model data"
        assert merged["rawResponse"] == "A lovely two-room cottage with a view."
        assert merged["metadata"]["modelStatistics"]["roomCount"] == 0

    def test_remote_failure_raises_merge_error(self):
        llm = FakeLLM(RemoteCallError("down"))
        with pytest.raises(MultimodalMergeError):
            asyncio.run(_processor(llm).merge({"sketch": data_url(), "speech": "x"}))

    def test_failed_image_analysis_is_absent(self):
        llm = FakeLLM(TWO_ROOMS)
        vision = FakeVision(error=AnalysisError("vision down"))
        merged = asyncio.run(_processor(llm, vision).merge({"sketch": data_url(), "photo": data_url(),
                                                            "speech": "x"}))
        modalities = merged["metadata"]["inputModalities"]
        assert modalities == {"text": False, "sketch": False, "speech": True, "photo": False}
        assert merged["metadata"]["sourceContribution"]["speech"] == pytest.approx(1.0)
        assert "SKETCH ANALYSIS:" not in llm.calls[0]["user_prompt"]
