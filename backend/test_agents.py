"""Tests for the Interpreter, Designer and Code Emitter agents."""
import asyncio

from conftest import DESIGN_REPLY, FakeLLM, FakeVision, data_url
from services.agents import DesignerAgent, InterpreterAgent, RendererAgent, build_stub_threejs_code
from services.agents.base_agent import PARSE_FAILURE
from services.agents.designer_agent import add_living_space_windows, enhance_design
from services.errors import AnalysisError, RemoteCallError
from services.vision_analyzer import VisionAnalyzer


# ============================================================================
# Interpreter
# ============================================================================

class TestInterpreterAgent:
    def test_extracts_requirements(self):
        llm = FakeLLM('Here you go: {"rooms": [{"type": "bedroom", "count": 2}]}')
        result = asyncio.run(InterpreterAgent(llm).execute(prompt="two bedrooms"))
        assert result["requirements"] == {"rooms": [{"type": "bedroom", "count": 2}]}
        assert result["sketchAnalysisAvailable"] is False
        assert "TEXT DESCRIPTION:\ntwo bedrooms" in llm.calls[0]["user_prompt"]

    def test_unparseable_reply_is_sentinel(self):
        llm = FakeLLM("I think you want a nice house.")
        result = asyncio.run(InterpreterAgent(llm).execute(prompt="house"))
        assert "error" not in result
        assert result["requirements"] == {"error": PARSE_FAILURE, "raw": "I think you want a nice house."}

    def test_remote_failure_marks_error(self):
        llm = FakeLLM(RemoteCallError("timeout"))
        result = asyncio.run(InterpreterAgent(llm).execute(prompt="house"))
        assert "timeout" in result["error"]
        assert result["requirementsExtracted"] is False
        assert result["originalPrompt"] == "house"

    def test_sketch_analysis_feeds_prompt(self):
        llm = FakeLLM('{"rooms": []}')
        vision = FakeVision({"objects": [{"object": "rectangle", "rectangle": {"x": 0, "y": 0, "w": 5, "h": 5}}]})
        agent = InterpreterAgent(llm, VisionAnalyzer(vision))
        result = asyncio.run(agent.execute(prompt="", sketch_data=data_url()))
        assert result["sketchAnalysisAvailable"] is True
        assert "SKETCH ANALYSIS:" in llm.calls[0]["user_prompt"]

    def test_failed_sketch_analysis_is_skipped(self):
        llm = FakeLLM('{"rooms": []}')
        agent = InterpreterAgent(llm, VisionAnalyzer(FakeVision(error=AnalysisError("down"))))
        result = asyncio.run(agent.execute(prompt="house", sketch_data=data_url()))
        assert result["sketchAnalysisAvailable"] is False
        assert "SKETCH ANALYSIS:" not in llm.calls[0]["user_prompt"]


# ============================================================================
# Designer
# ============================================================================

class TestDesignerAgent:
    def test_design_is_repaired_and_lit(self):
        llm = FakeLLM(DESIGN_REPLY)
        result = asyncio.run(DesignerAgent(llm).execute(requirements={"rooms": 3}))
        design = result["design"]
        assert len(design["doors"]) == 1
        window_rooms = [w["room"] for w in design["windows"]]
        assert window_rooms.count("Living Room") == 1
        assert window_rooms.count("Kitchen") == 1
        assert "Storage" not in window_rooms
        assert llm.calls[0]["temperature"] == 0.4

    def test_unparseable_reply_uses_canonical_layout(self):
        llm = FakeLLM("Sorry, I cannot do that.")
        design = asyncio.run(DesignerAgent(llm).execute(requirements={}))["design"]
        assert [r["name"] for r in design["rooms"]] == ["living", "kitchen", "hallway", "bedroom"]
        assert "error" not in design and "raw" not in design

    def test_remote_failure_marks_error(self):
        llm = FakeLLM(RemoteCallError("429"))
        result = asyncio.run(DesignerAgent(llm).execute(requirements={"a": 1}))
        assert result["designCreated"] is False
        assert result["requirements"] == {"a": 1}
        assert "error" in result

    def test_living_windows_added_once(self):
        model = enhance_design({"rooms": [{"name": "bedroom"}], "windows": []})
        assert add_living_space_windows(model) == 0
        assert model["windows"] == [
            {"room": "bedroom", "wall": "south", "width": 1.2, "height": 1.0, "position": 0.5},
        ]


# ============================================================================
# Code Emitter
# ============================================================================

class TestRendererAgent:
    def test_returns_code(self):
        llm = FakeLLM("const scene = new THREE.Scene();")
        result = asyncio.run(RendererAgent(llm).execute(design={"rooms": []}, original_prompt="hut"))
        assert result == {"code": "const scene = new THREE.Scene();"}
        assert "Original prompt: hut" in llm.calls[0]["user_prompt"]
        assert llm.calls[0]["temperature"] == 0.1

    def test_remote_failure_marks_error(self):
        result = asyncio.run(RendererAgent(FakeLLM(RemoteCallError("down"))).execute(design={}))
        assert "error" in result

    def test_stub_code_has_every_room(self):
        model = {"rooms": [
            {"name": "living room", "width": 5, "length": 7, "height": 3, "x": 0, "y": 0, "z": 0},
            {"name": "2nd bed", "width": 4, "length": 4, "height": 3, "x": 5, "y": 0, "z": 0},
        ]}
        code = build_stub_threejs_code(model, 'say "hi"')
        assert code.count("createRoom(\"") == 2
        assert "const living_room_0 = " in code
        assert "const room_2nd_bed_1 = " in code
        assert '// Generated Three.js code for: "say \\"hi\\""' in code
