"""
Configuration constants for Browser Oracle.

Default selectors and URLs for the ChatGPT web UI. These are the values the
SelectorConfig model falls back to; override them in the YAML config when the
target UI changes its markup.
"""

DEFAULT_URL = "https://chatgpt.com/"

# Label of the model the UI selects on its own; no picker interaction needed
DEFAULT_MODEL_TARGET = "ChatGPT 5"

# Prompt input surface
PROMPT_SELECTOR = "#prompt-textarea"
INPUT_SELECTORS = [
    'textarea[data-id="prompt-textarea"]',
    'textarea[placeholder*="Send a message"]',
    'textarea[placeholder*="Message"]',
    'textarea[aria-label="Message ChatGPT"]',
    'div[contenteditable="true"][id="prompt-textarea"]',
    'div[contenteditable="true"]',
    "textarea:not([disabled])",
]

SEND_BUTTON_SELECTOR = (
    'button[data-testid="send-button"],'
    'button[data-testid*="composer-send"],'
    'button[aria-label="Send prompt"]'
)
STOP_BUTTON_SELECTOR = 'button[data-testid="stop-button"]'
COPY_BUTTON_SELECTOR = 'button[data-testid="copy-turn-action-button"]'

# Conversation turns and assistant replies
CONVERSATION_TURN_SELECTOR = 'article[data-testid^="conversation-turn"]'
REPLY_COUNT_SELECTOR = (
    'article[data-testid^="conversation-turn"],[data-message-author-role="assistant"]'
)
ANSWER_SELECTORS = [
    'article[data-testid^="conversation-turn"] [data-message-author-role="assistant"]',
    '[data-message-author-role="assistant"] .markdown',
    '[data-message-author-role="assistant"]',
]

# Dialogs that can sit on top of the composer, most likely first
OVERLAY_SELECTORS = [
    'button[data-testid="close-button"]',
    'button[aria-label="Close"]',
    'button:has-text("Stay logged out")',
    'button:has-text("Maybe later")',
    'button:has-text("Dismiss")',
    'button:has-text("Okay, let’s go")',
    'button:has-text("Accept all")',
]

MODEL_SWITCHER_SELECTOR = '[data-testid="model-switcher-dropdown-button"]'
MODEL_MENU_ITEM_SELECTOR = 'button,[role="menuitem"],[role="menuitemradio"]'

# Anti-bot interstitial
CHALLENGE_FRAME_PATTERN = "challenges.cloudflare.com/cdn-cgi/challenge-platform"
CHALLENGE_ELEMENT_SELECTOR = 'input[type="checkbox"], .challenge-form input'
CHALLENGE_TITLE_MARKER = "just a moment"

# Phrases shown while a reasoning model is still working
THINKING_PATTERN = r"Thinking|Reasoning|Answer now"

# Chromium flags for launched (not attached) browsers
CHROME_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-background-networking",
    "--disable-breakpad",
    "--disable-default-apps",
    "--disable-sync",
    "--no-first-run",
    "--password-store=basic",
    "--use-mock-keychain",
    "--window-size=1280,720",
]
VIEWPORT = {"width": 1280, "height": 720}
