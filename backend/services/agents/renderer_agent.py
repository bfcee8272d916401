"""
Code Emitter agent: Three.js source for a finished model.

The generated code is opaque text for display/download; nothing here checks
that it runs. ``build_stub_threejs_code`` renders a deterministic scene for
the offline path.
"""

import json
import logging
import re

from services.agents.base_agent import BaseAgent
from services.errors import CodeEmitterError, RemoteCallError

logger = logging.getLogger(__name__)

RENDERER_SYSTEM_PROMPT = """You are an expert Three.js developer. Generate clean, well-structured Three.js code to render a 3D CAD model
based on the provided model data. The code should:

1. Initialize a scene, camera, and renderer
2. Create rooms with floors and transparent walls
3. Add doors and windows in the correct positions
4. Include orbit controls for navigation
5. Add appropriate lighting
6. Handle window resizing
7. Ensure multiple rooms are rendered correctly when present in the data
8. Use different colors for different rooms to make them visually distinct

Your code should be complete, runnable, and properly commented."""


def build_renderer_prompt(model: dict, original_prompt: str) -> str:
    return f"""Original prompt: {original_prompt}

Model data: {json.dumps(model, indent=2)}

Generate Three.js code to render this 3D model with all rooms, doors, and windows.
Be sure to accurately represent the spatial relationships between all rooms.
Use different colors for different rooms to make them visually distinct.
Handle cases where rooms may not be directly adjacent but are still connected by doors."""


def _js_identifier(name: str, index: int) -> str:
    ident = re.sub(r'\W', '_', str(name))
    if not ident or ident[0].isdigit():
        ident = f"room_{ident}"
    return f"{ident}_{index}"


_STUB_HEADER = """// Generated Three.js code for: {title}
import * as THREE from 'three';
import {{ OrbitControls }} from 'three/examples/jsm/controls/OrbitControls';

// Initialize scene
const scene = new THREE.Scene();
scene.background = new THREE.Color(0xf0f0f0);

// Initialize camera
const camera = new THREE.PerspectiveCamera(75, window.innerWidth / window.innerHeight, 0.1, 1000);
camera.position.set(10, 10, 10);

// Initialize renderer
const renderer = new THREE.WebGLRenderer({{ antialias: true }});
renderer.setSize(window.innerWidth, window.innerHeight);
renderer.shadowMap.enabled = true;
document.body.appendChild(renderer.domElement);

// Add controls
const controls = new OrbitControls(camera, renderer.domElement);
controls.target.set(0, 0, 0);
controls.update();

// Add lights
const ambientLight = new THREE.AmbientLight(0x404040);
scene.add(ambientLight);

const directionalLight = new THREE.DirectionalLight(0xffffff, 0.5);
directionalLight.position.set(10, 10, 10);
directionalLight.castShadow = true;
scene.add(directionalLight);

function createRoom(name, width, length, height, x, y, z) {{
  const geometry = new THREE.BoxGeometry(width, height, length);
  const edges = new THREE.EdgesGeometry(geometry);
  const material = new THREE.LineBasicMaterial({{ color: 0x000000 }});
  const wireframe = new THREE.LineSegments(edges, material);
  wireframe.position.set(x + width / 2, y + height / 2, z + length / 2);
  wireframe.name = name;
  scene.add(wireframe);

  const floorGeometry = new THREE.PlaneGeometry(width, length);
  const floorMaterial = new THREE.MeshStandardMaterial({{
    color: 0xcccccc,
    side: THREE.DoubleSide,
    transparent: true,
    opacity: 0.7
  }});
  const floor = new THREE.Mesh(floorGeometry, floorMaterial);
  floor.rotation.x = Math.PI / 2;
  floor.position.set(x + width / 2, 0.01, z + length / 2);
  floor.receiveShadow = true;
  scene.add(floor);

  return {{ wireframe, floor }};
}}

// Create rooms
"""

_STUB_FOOTER = """
// Animation loop
function animate() {
  requestAnimationFrame(animate);
  controls.update();
  renderer.render(scene, camera);
}

animate();

// Handle window resize
window.addEventListener('resize', () => {
  camera.aspect = window.innerWidth / window.innerHeight;
  camera.updateProjectionMatrix();
  renderer.setSize(window.innerWidth, window.innerHeight);
});
"""


def build_stub_threejs_code(model: dict, prompt: str = "") -> str:
    """Deterministic Three.js scene with one wireframe box per room."""
    title = json.dumps(prompt or "Sketch-based floor plan")
    calls = []
    for i, room in enumerate(model.get("rooms", [])):
        calls.append(
            f"const {_js_identifier(room['name'], i)} = createRoom("
            f"{json.dumps(room['name'])}, {room['width']}, {room['length']}, {room['height']}, "
            f"{room['x']}, {room['y']}, {room['z']});"
        )
    return _STUB_HEADER.format(title=title) + "\n".join(calls) + "\n" + _STUB_FOOTER


class RendererAgent(BaseAgent):
    name = "Code Emitter"
    system_prompt = RENDERER_SYSTEM_PROMPT
    default_temperature = 0.1

    async def emit(self, model: dict, original_prompt: str = "") -> str:
        try:
            return await self.call_llm(build_renderer_prompt(model, original_prompt))
        except RemoteCallError as e:
            raise CodeEmitterError(f"Failed to generate code: {e}") from e

    async def execute(self, design=None, original_prompt: str = "") -> dict:
        logger.info("Code Emitter generating visualization code")
        try:
            code = await self.emit(design, original_prompt)
        except CodeEmitterError as e:
            return {"error": str(e)}
        return {"code": code}
