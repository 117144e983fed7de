"""Constants and default values for SandCrew."""

# Default model configuration
DEFAULT_MODEL = "anthropic:claude-sonnet-4-5"

# Agent loop defaults
DEFAULT_MAX_TOOL_ROUNDS = 10
DEFAULT_SETTLE_MS = 50  # milliseconds to let the sandbox start its rebuild
DEFAULT_REQUEST_TIMEOUT = 120  # seconds

# Version control defaults
DEFAULT_BASE_BRANCH = "main"
DEFAULT_AUTHOR_NAME = "SandCrew"
DEFAULT_AUTHOR_EMAIL = "sandcrew@localhost"
GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# Local state directory (session log, run logs, checkout)
STATE_DIR = ".sandcrew"

GREETING = "Hello! I'm your coding assistant. How can I help you today?"

NO_CHANGES = "No changes detected in the repository."

FALLBACK_COMMIT_TITLE = "feat: update code"
FALLBACK_COMMIT_DESCRIPTION = "Changes made to the codebase."

# Path segments the synchronizer never writes into the checkout
EXCLUDED_NAMESPACES = ("node_modules", ".git")

# Built-in ignore patterns for walking a checkout
BUILTIN_IGNORES = [
    # Version control metadata
    ".git/",

    # SandCrew internal
    ".sandcrew/",

    # Dependency caches
    "node_modules/",
    "__pycache__/",
    ".venv/",
]

# Files never loaded into the workspace buffer
BINARY_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".ico", ".webp", ".bmp",
    ".woff", ".woff2", ".eot", ".ttf", ".otf",
    ".exe", ".dll", ".so", ".dylib",
    ".zip", ".tar", ".gz", ".rar", ".7z",
    ".mp3", ".mp4", ".avi", ".pdf",
}

# Model descriptors - Anthropic Claude models only
SUPPORTED_MODELS = {
    # Claude Sonnet 4.5 - Latest flagship model (best for coding and agents)
    "anthropic:claude-sonnet-4-5": {
        "provider": "anthropic",
        "name": "claude-sonnet-4-5-20250929",
        "max_output_tokens": 8192,
    },
    # Claude Haiku 4.5 - Fast and cost-effective
    "anthropic:claude-haiku-4-5": {
        "provider": "anthropic",
        "name": "claude-haiku-4-5-20251001",
        "max_output_tokens": 8192,
    },
    # Claude Opus 4.1 - Most capable for complex reasoning
    "anthropic:claude-opus-4-1": {
        "provider": "anthropic",
        "name": "claude-opus-4-1-20250805",
        "max_output_tokens": 8192,
    },
}
