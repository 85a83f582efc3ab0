"""
Prompt texts and templates used by the expert and prompt-merge nodes.

Templates are rendered with ``template_parse`` (jinja2).
"""

from node_lab.util.template_parser import template_parse

EXPERT_INSTRUCTIONS = {
    'default': (
        "You are a creative director for AI image and video generation. "
        "Read the user's request and any attached reference images, summarize the creative intent, "
        "and produce a set of ready-to-use generation prompts, each with a short title."
    ),
    'optimizer': (
        "You are a prompt engineer. Rewrite the user's idea into precise, richly detailed prompts for an "
        "image model: subject, composition, lens, lighting, materials, color palette and mood. "
        "Offer several distinct variations, each with a short title."
    ),
    'storyboard': (
        "You are a storyboard director. Break the user's story into a sequence of shots. "
        "For every shot give a title and a self-contained prompt describing framing, camera angle, "
        "character action and environment so each frame can be generated independently."
    ),
    'action': (
        "You are an action director. Design the key poses and motion beats for the described scene. "
        "Each output is one beat: a title and a prompt covering body mechanics, camera movement and timing."
    ),
    'character': (
        "You are a character designer. From the request and references, define the character's "
        "appearance, costume, silhouette, palette and personality. Produce prompts for turnaround views, "
        "expressions and costume details, each with a short title."
    ),
    'environment': (
        "You are an environment concept artist. Describe the setting's architecture, landscape, "
        "lighting, weather and atmosphere. Produce prompts for establishing shots and detail views, "
        "each with a short title."
    ),
}

STORYBOARD_CONSISTENCY = (
    "CRITICAL INSTRUCTION: User has requested SPACE CONSISTENCY. You MUST ensure that all output frames "
    "share the EXACT SAME environment, lighting, and atmosphere description. Only the camera angle and "
    "character movement should change."
)

LANGUAGE_NAMES = {
    'zh': 'Chinese',
    'en': 'English',
}

LANGUAGE_DIRECTIVE = (
    "LANGUAGE REQUIREMENT: You MUST output all analysis text and keyword content in {{ language }}."
)

JSON_DIRECTIVE = (
    "You MUST return valid JSON with a string field \"displaySummary\" and an array field \"outputs\" "
    "whose items are objects with string fields \"title\" and \"prompt\"."
)

REMARKS_TEMPLATE = """
Background notes for the input images, use them during the analysis:
{% for image in images %}
{% if image.remark %}
[Image {{ loop.index }} notes]: {{ image.remark }}
{% endif %}
{% endfor %}

Main request:
{{ prompt or "No specific text request, create from the images." }}
"""

MERGED_PROMPT_TEMPLATE = """
TASK: Generate a multi-shot sequence in a {{ grid_type }} grid format.

VISUAL STYLE: Exact imitation of the artistic medium, textures, and rendering style of the provided reference images. DO NOT add any extra artistic filters.

### STYLE CLONE: Inherit the artistic medium and visual aesthetic of the references.
- VISUAL CONSISTENCY: Ensure the same character appearance and environmental aesthetic across all panels.

CHARACTER ANCHORS:
{{ anchor }}

SEQUENCE CONTENT:
{% for shot in shots %}
[Shot {{ loop.index }}]: {{ shot }}
{% endfor %}

TECHNICAL REQUIREMENTS:
1. Clean {{ grid_type }} grid with thin dividing lines.
2. NO TEXT, LABELS, OR CAPTIONS in the frames.
3. NO DUPLICATE CHARACTERS: Each character appears exactly once per frame.
4. MEDIUM FIDELITY: Maintain the specific artistic quality and structural foundation of the first reference image.
"""


def build_system_instruction(variant: str, consistency: bool = False, output_lang: str = 'zh') -> str:
    instruction = EXPERT_INSTRUCTIONS.get(variant or '', EXPERT_INSTRUCTIONS['default'])
    if variant == 'storyboard' and consistency:
        instruction += "\n\n" + STORYBOARD_CONSISTENCY
    language = LANGUAGE_NAMES.get(output_lang, output_lang)
    instruction += "\n\n" + template_parse(LANGUAGE_DIRECTIVE, {'language': language})
    return instruction


def render_merged_prompt(grid_type: str, anchor: str, shots: list[str]) -> str:
    return template_parse(MERGED_PROMPT_TEMPLATE, {
        'grid_type': grid_type,
        'anchor': anchor,
        'shots': shots,
    })


def render_remarks_prompt(prompt: str, images) -> str:
    return template_parse(REMARKS_TEMPLATE, {'prompt': prompt, 'images': images})
