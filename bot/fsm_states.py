from aiogram.fsm.state import State, StatesGroup


class OnboardingFSM(StatesGroup):
    PERSONAL = State()
    ADDITIONAL = State()
    CONSENT = State()
    SUBMITTED = State()
