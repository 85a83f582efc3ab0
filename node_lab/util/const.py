HANDLE_TEXT = 'text'
HANDLE_IMAGE = 'image'
HANDLE_VIDEO = 'video'
HANDLE_ANCHOR = 'anchor'
HANDLE_SEQUENCE = 'sequence'

# Target handles whose source content is concatenated into the prompt text
TEXT_TARGET_HANDLES = frozenset({
    None,
    '',
    HANDLE_TEXT,
    HANDLE_ANCHOR,
    HANDLE_SEQUENCE,
})

# Target handles that carry an explicit rank on the edge
ORDERED_TARGET_HANDLES = frozenset({
    HANDLE_IMAGE,
    HANDLE_SEQUENCE,
})

# Provider prefix used in model identifiers, e.g. 'comfly:veo3.1-fast'
PROVIDER_COMFLY = 'comfly'
PROVIDER_GRSAI = 'grsai'
MODEL_GEMINI_NATIVE = 'gemini-native'

DEFAULT_VIDEO_MODEL = 'veo3.1-fast'
UPSAMPLE_VIDEO_MODEL = 'veo3.1-fast'
UPSAMPLE_RESOLUTION = '1080p'
SORA_MODEL = 'sora-2'

DEFAULT_EXPERT_PROMPT = 'Start creation'
DEFAULT_IMAGE_PROMPT = 'A masterpiece'
DEFAULT_TASK_IMAGE_PROMPT = 'Masterpiece'
DEFAULT_VIDEO_PROMPT = 'Cinematic masterpiece'
DEFAULT_CHARACTER_ANCHOR = 'No character anchor specified'

GRID_CELLS = {
    '2x2': 2,
    '3x3': 3,
}
