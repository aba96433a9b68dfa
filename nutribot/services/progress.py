from __future__ import annotations

from typing import Tuple

from nutribot.services.storage import DailyGoals, DailyTotals

BAR_BLOCKS = 10
RECOMMENDED_WATER_ML = 2000


def progress_bar(current: float, goal: float) -> Tuple[str, int]:
    """Return ``(bar, percentage)``; the percentage is capped at 100."""
    if goal <= 0:
        percentage = 100 if current > 0 else 0
    else:
        percentage = int(min(current / goal * 100, 100))
    filled = max(percentage, 0) // BAR_BLOCKS
    return "█" * filled + "░" * (BAR_BLOCKS - filled), percentage


def motivational_message(calories: float, water_ml: int) -> str:
    water_percentage = int(water_ml / RECOMMENDED_WATER_ML * 100)
    if water_percentage >= 100 and 1500 <= calories <= 2500:
        return "🎉 Harika! Hem kalori hedefinde hem de su tüketiminde başarılı!"
    if water_percentage < 50:
        return "💧 Su tüketimine dikkat et! Daha fazla su içmeyi unutma."
    if calories < 1200:
        return "🍽️ Kalori alımın düşük. Yeterli beslenmeye dikkat et."
    if calories > 3000:
        return "⚠️ Kalori alımın yüksek. Porsiyonlara dikkat edebilirsin."
    return "👍 İyi gidiyorsun! Böyle devam et."


def format_daily_report(totals: DailyTotals, goals: DailyGoals) -> str:
    calorie_goal, water_goal = goals.calories, goals.water_ml
    calorie_bar, calorie_pct = progress_bar(totals.total_calories, calorie_goal)
    water_bar, water_pct = progress_bar(totals.total_water_ml, water_goal)
    return (
        "📊 <b>Günlük Rapor</b>\n\n"
        f"🔥 Kalori\n{calorie_bar}\n"
        f"{totals.total_calories:.0f}/{calorie_goal} kcal ({calorie_pct}%)\n\n"
        f"💧 Su\n{water_bar}\n"
        f"{totals.total_water_ml}/{water_goal} ml ({water_pct}%)\n\n"
        f"🍽️ Öğün Sayısı: {totals.meals_count}\n"
        f"📝 Su Kayıt: {totals.water_logs_count}\n\n"
        f"{motivational_message(totals.total_calories, totals.total_water_ml)}"
    )
