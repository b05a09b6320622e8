from typing import Dict, Optional

import structlog

from packages.import_engine.fingerprint import clean_text
from packages.import_engine.stores import RuleStore

logger = structlog.get_logger()


def rule_key(text: Optional[str]) -> str:
    """Normalized lookup key: whitespace collapsed and upper-cased."""
    return clean_text(text or "")


class CategoryLearner:
    """Learns merchant/description -> category rules from user corrections.

    Rules belong to one household at a time. Switching household always
    reloads from the rule store; writes go to memory and the store together.
    """

    def __init__(self, store: RuleStore):
        self.store = store
        self.household_id: Optional[str] = None
        self.rules: Dict[str, str] = {}

    async def activate(self, household_id: str) -> None:
        self.rules = await self.store.load(household_id)
        self.household_id = household_id
        logger.debug("category_rules_loaded", household_id=household_id, count=len(self.rules))

    async def _ensure(self, household_id: str) -> None:
        if self.household_id != household_id:
            await self.activate(household_id)

    async def learn(
        self, household_id: str, merchant: Optional[str], description: Optional[str], category: str
    ) -> Optional[str]:
        """Remember ``category`` for the merchant, or the description when there is none.

        Returns the key that was stored, or None when both texts are empty.
        """
        await self._ensure(household_id)
        key = rule_key(merchant) or rule_key(description)
        if not key:
            return None

        await self.store.save(household_id, key, category)
        self.rules[key] = category
        logger.info("category_rule_learned", household_id=household_id, key=key, category=category)
        return key

    async def suggest(
        self, household_id: str, merchant: Optional[str], description: Optional[str]
    ) -> Optional[str]:
        """Look up the merchant key first, then the description key."""
        await self._ensure(household_id)
        for key in (rule_key(merchant), rule_key(description)):
            if key and key in self.rules:
                return self.rules[key]
        return None
