"""Detection of a mention being typed at the cursor."""

from pydantic import BaseModel, Field

from recordcomments.core.modules.mention.models import TRIGGER_TYPES, MentionType


class TriggerInfo(BaseModel):
    """Mention currently being typed."""

    type: MentionType = Field(..., description="Mention type selected by the trigger character")
    query: str = Field(..., description="Lower-cased text typed after the trigger, used to filter candidates")
    start_index: int = Field(..., description="Index of the trigger character in the text", ge=0)


class MentionPermissions(BaseModel):
    """Mention types allowed in the current context."""

    users: bool = True
    fields: bool = True  # Needs a backing record
    assets: bool = True  # Needs upload read permission
    records: bool = True
    models: bool = True

    def allows(self, mention_type: MentionType) -> bool:
        return {
            MentionType.USER: self.users,
            MentionType.FIELD: self.fields,
            MentionType.ASSET: self.assets,
            MentionType.RECORD: self.records,
            MentionType.MODEL: self.models,
        }[mention_type]


def detect_active_trigger(text: str, cursor_position: int) -> TriggerInfo | None:
    """Find the mention being typed immediately before the cursor.

    The right-most trigger character before the cursor wins; any whitespace between
    it and the cursor means the mention was completed or abandoned.
    """
    text_before_cursor = text[: max(cursor_position, 0)]
    trigger_index = max((text_before_cursor.rfind(trigger) for trigger in TRIGGER_TYPES), default=-1)
    if trigger_index == -1:
        return None

    typed = text_before_cursor[trigger_index + 1 :]
    if any(char.isspace() for char in typed):
        return None

    return TriggerInfo(
        type=TRIGGER_TYPES[text_before_cursor[trigger_index]],
        query=typed.lower(),
        start_index=trigger_index,
    )


def filter_trigger(trigger: TriggerInfo | None, permissions: MentionPermissions) -> TriggerInfo | None:
    """Drop a detected trigger whose mention type is not permitted here."""
    if trigger is None or not permissions.allows(trigger.type):
        return None
    return trigger
