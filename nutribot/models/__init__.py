from nutribot.models.user import OnboardingStep, User
from nutribot.models.meal_log import FavoriteMeal, MealCategory, MealLog, WaterLog
from nutribot.models.conversation_log import ConversationLog, WindowWarning

__all__ = [
    "ConversationLog",
    "FavoriteMeal",
    "MealCategory",
    "MealLog",
    "OnboardingStep",
    "User",
    "WaterLog",
    "WindowWarning",
]
