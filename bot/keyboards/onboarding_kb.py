from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from onboarding.catalog import options_for

BACK_TEXT = "⬅ Back"
RESET_TEXT = "❌ Start over"
KEEP_TEXT = "✅ Keep current"
SKIP_TEXT = "Skip"
AGREE_TEXT = "I agree"
NEW_APPLICATION_TEXT = "Start a new application"

# Fields answered from a fixed list on the keyboard.
KEYBOARD_FIELDS = {
    "title",
    "gender",
    "maritalStatus",
    "birthPlace",
    "country",
    "nationality",
    "immigrationStatus",
    "tenancyType",
}


def _rows(labels: list[str], per_row: int) -> list[list[KeyboardButton]]:
    return [[KeyboardButton(text=label) for label in labels[i : i + per_row]] for i in range(0, len(labels), per_row)]


def field_keyboard(field: str, *, has_current: bool, optional: bool, allow_back: bool) -> ReplyKeyboardMarkup:
    rows: list[list[KeyboardButton]] = []
    if field in KEYBOARD_FIELDS:
        rows.extend(_rows([option.label for option in options_for(field)], per_row=2))
    controls = []
    if has_current:
        controls.append(KeyboardButton(text=KEEP_TEXT))
    if optional:
        controls.append(KeyboardButton(text=SKIP_TEXT))
    if controls:
        rows.append(controls)
    footer = [KeyboardButton(text=BACK_TEXT)] if allow_back else []
    footer.append(KeyboardButton(text=RESET_TEXT))
    rows.append(footer)
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True, one_time_keyboard=True)


def consent_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=AGREE_TEXT)],
            [KeyboardButton(text=BACK_TEXT), KeyboardButton(text=RESET_TEXT)],
        ],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def completion_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=NEW_APPLICATION_TEXT)]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )
