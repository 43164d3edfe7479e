"""Engine-wide constants: delimiters, prompt templates and limits."""

# =============================================================================
# Global memory
# =============================================================================

MEMORY_USER_MESSAGE_LIMIT = 500
MEMORY_AGENT_RESPONSE_LIMIT = 2000

MEMORY_BLOCK_HEADER = "=== GLOBAL CONVERSATION LOG ==="
MEMORY_BLOCK_FOOTER = "=== END LOG ==="

# =============================================================================
# Context assembly
# =============================================================================

KNOWLEDGE_BLOCK_HEADER = "=== KNOWLEDGE BASE ==="
KNOWLEDGE_BLOCK_FOOTER = "=== END KNOWLEDGE ==="

# Artifacts of these types travel base64-encoded and are not inlined as text
BINARY_MIME_TYPES = frozenset({"application/pdf"})
BINARY_MIME_PREFIXES = ("image/",)

OUTPUT_ARTIFACT_MIME_TYPE = "text/markdown"

# =============================================================================
# Opening-turn prompt
# =============================================================================

GOAL_TEMPLATE = 'GOAL:\n"{message}"\n\n'
REQUEST_TEMPLATE = 'USER REQUEST:\n"{message}"\n\n'
TASK_TEMPLATE = "TASK INSTRUCTION:\n{task}\n\n"
OPENING_CLOSER = (
    "Respond based on your system instructions, knowledge base, "
    "and the global conversation context."
)

# =============================================================================
# Branching
# =============================================================================

MAIN_BRANCH_ID = "main"

# =============================================================================
# Comparison
# =============================================================================

MIN_COMPARISON_MODELS = 2


def is_binary_mime_type(mime_type: str) -> bool:
    """Return True for artifact types carried as base64 rather than text."""
    return mime_type in BINARY_MIME_TYPES or mime_type.startswith(BINARY_MIME_PREFIXES)
