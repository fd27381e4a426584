"""
Best-effort model selection through the UI model dropdown.
"""

import logging

from browser_oracle.config.constants import DEFAULT_MODEL_TARGET
from browser_oracle.config.schema import SelectorConfig

from .page import PageHandle

logger = logging.getLogger(__name__)

MENU_OPEN_PAUSE_MS = 500


def label_matches(label: str, desired: str) -> bool:
    """
    Return True if every word of desired appears in label (case-insensitive).

    Example:
        >>> label_matches("GPT-5 Thinking", "gpt-5 thinking")
        True
        >>> label_matches("GPT-4o", "gpt-5")
        False
    """
    text = label.strip().lower()
    tokens = desired.lower().split()
    return bool(text) and bool(tokens) and all(token in text for token in tokens)


def needs_selection(desired_model: str | None) -> bool:
    """Return True if desired_model differs from what the UI picks by default."""
    return bool(desired_model) and desired_model.strip().lower() != DEFAULT_MODEL_TARGET.lower()


async def select_model(page: PageHandle, desired_model: str, selectors: SelectorConfig) -> str | None:
    """
    Open the model switcher and click the first menu item matching desired_model.

    A missing switcher, no matching item or any interaction error leaves the
    current model in place; the run continues either way.

    Args:
        page: Page under control
        desired_model: Model label, e.g. "GPT-5 Thinking"
        selectors: Switcher and menu item selectors

    Returns:
        Label of the item clicked, or None if nothing was selected
    """
    try:
        button = await page.query(selectors.model_switcher)
        if button is None:
            logger.debug("Model switcher not found; keeping current model")
            return None
        await button.click()
        await page.pause(MENU_OPEN_PAUSE_MS)

        for item in await page.query_all(selectors.model_menu_item):
            label = (await item.inner_text() or "").strip()
            if label_matches(label, desired_model):
                await item.click()
                logger.info(f"Model picker: {label}")
                return label
    except Exception as e:
        logger.warning(f"Model selection failed: {e}")
        return None

    logger.warning(f"No model menu item matched '{desired_model}'")
    return None
