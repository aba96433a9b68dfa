"""
Calorie estimation and nutrition advice through the OpenRouter chat API.
"""
from __future__ import annotations

import base64
import logging
import re
import time
from dataclasses import dataclass
from typing import List, Optional

import requests

from nutribot.config import OPENROUTER_API_KEY, OPENROUTER_MODEL
from nutribot.services.storage import DailyGoals, DailyTotals

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
MAX_RETRIES = 3
RETRY_DELAYS = [2, 5, 10]
DEFAULT_MEAL_CALORIES = 400.0

_MEAL_FORMAT = (
    "CEVAP FORMATI (KESİNLİKLE BU FORMATI KULLAN):\n"
    "Yemek: [yemek adı ve bileşenler]\n"
    "Kalori: [sadece sayı - kcal birimi YAZMA]\n"
    "Porsiyon: [büyüklük açıklaması]\n"
    "Besin Değeri: [protein/karbonhidrat/yağ dengesi]\n"
    "Sağlık Notu: [sağlıklı mı, iyileştirme önerileri]\n\n"
    "Markdown kullanma, sadece düz metin yaz. "
    "Kalori satırında SADECE SAYI yaz (örn: Kalori: 650)."
)

IMAGE_PROMPT = (
    "Sen bir gıda analizi uzmanısın. Bu yemek resmini analiz et: yemekleri tanı, "
    "porsiyon büyüklüğünü değerlendir ve toplam kaloriyi hesapla.\n\n" + _MEAL_FORMAT
)

TEXT_PROMPT = (
    "Sen bir gıda analizi uzmanısın. Kullanıcının yediği yemeği analiz et: "
    "\"{description}\"\nPorsiyonu tahmin et ve toplam kaloriyi hesapla.\n\n" + _MEAL_FORMAT
)

ADVICE_PROMPT = (
    "You are a wellness coach. Provide brief encouraging feedback in Turkish about daily progress.\n\n"
    "Data: {calories:.0f} kcal (goal: {calorie_goal} kcal), {meals} meals, "
    "{water} ml water (goal: {water_goal} ml)\n\n"
    "Write 3-4 short sentences in Turkish. Use actual numbers. Be positive. "
    "No markdown. Start sentences with emoji."
)

_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_NUMBER_CHARS_RE = re.compile(r"[^0-9.,]")


class AIServiceError(RuntimeError):
    """The AI provider failed or returned an unusable response."""


class AIRateLimitError(AIServiceError):
    pass


@dataclass
class MealAnalysis:
    calories: float
    description: str


def clean_markdown(text: str) -> str:
    for token in ("###", "##", "# ", "**", "__", "```"):
        text = text.replace(token, "")
    text = _LINK_RE.sub(r"\1", text)
    return text.strip()


def parse_calories(value: str) -> float:
    """Parse a calorie figure written with either thousands or decimal separators.

    ``1.250`` and ``1,250`` are 1250; ``650,5`` and ``650.5`` are 650.5.
    """
    cleaned = _NUMBER_CHARS_RE.sub("", value.replace("kcal", "").replace("cal", ""))
    if not cleaned:
        return 0.0
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned or "." in cleaned:
        sep = "," if "," in cleaned else "."
        after = cleaned[cleaned.find(sep) + 1:]
        if 0 < len(after) <= 2:
            cleaned = cleaned.replace(sep, ".")
        else:
            cleaned = cleaned.replace(sep, "")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_analysis_response(response: str) -> MealAnalysis:
    calories = 0.0
    lines: List[str] = []
    for line in response.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("Kalori:"):
            calories = parse_calories(stripped[len("Kalori:"):])
        else:
            lines.append(stripped)

    description = "\n".join(lines)
    if calories == 0.0:
        logger.warning("Could not parse calories from response, using default %.0f kcal", DEFAULT_MEAL_CALORIES)
        logger.debug("Original AI response: %s", response)
        calories = DEFAULT_MEAL_CALORIES
        description = response
    return MealAnalysis(calories=calories, description=clean_markdown(description))


class OpenRouterClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or OPENROUTER_API_KEY
        self.model = model or OPENROUTER_MODEL
        self.timeout = timeout
        self.session = session or requests.Session()

    def _chat(self, content, max_tokens: int) -> str:
        if not self.api_key:
            raise AIServiceError("OPENROUTER_API_KEY is not configured")
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
            "max_tokens": max_tokens,
        }

        data = None
        for attempt in range(MAX_RETRIES):
            try:
                resp = self.session.post(OPENROUTER_URL, json=payload, headers=headers, timeout=self.timeout)
            except requests.Timeout:
                logger.warning("OpenRouter timeout (attempt %d/%d)", attempt + 1, MAX_RETRIES)
                if attempt < MAX_RETRIES - 1:
                    continue
                raise AIServiceError("OpenRouter request timed out")
            except requests.RequestException as e:
                raise AIServiceError(f"OpenRouter request failed: {e}") from e

            if resp.status_code == 429:
                logger.warning("Rate limited (attempt %d/%d): %s", attempt + 1, MAX_RETRIES, resp.text)
                if attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAYS[attempt])
                    continue
                raise AIRateLimitError(f"Rate limit exceeded for model {self.model}")
            if resp.status_code != 200:
                logger.error("OpenRouter error %s: %s", resp.status_code, resp.text)
                raise AIServiceError(f"OpenRouter API error ({resp.status_code})")
            try:
                data = resp.json()
            except ValueError as e:
                raise AIServiceError("Invalid JSON from OpenRouter") from e
            break

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.error("Unexpected OpenRouter response: %s", data)
            raise AIServiceError("OpenRouter returned an empty response")
        if not content:
            raise AIServiceError("OpenRouter returned an empty response")
        return content

    def analyze_meal_image(self, image_path: str) -> MealAnalysis:
        try:
            with open(image_path, "rb") as f:
                encoded = base64.b64encode(f.read()).decode("ascii")
        except OSError as e:
            raise AIServiceError(f"Cannot read image {image_path}: {e}") from e
        mime_type = "image/png" if image_path.lower().endswith(".png") else "image/jpeg"
        content = [
            {"type": "text", "text": IMAGE_PROMPT},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
        ]
        logger.info("Analyzing meal image %s with model %s", image_path, self.model)
        return parse_analysis_response(self._chat(content, max_tokens=500))

    def analyze_meal_text(self, description: str) -> MealAnalysis:
        logger.info("Analyzing meal text with model %s", self.model)
        return parse_analysis_response(self._chat(TEXT_PROMPT.format(description=description), max_tokens=500))

    def get_advice(self, totals: DailyTotals, goals: DailyGoals) -> str:
        prompt = ADVICE_PROMPT.format(
            calories=totals.total_calories,
            calorie_goal=goals.calories,
            meals=totals.meals_count,
            water=totals.total_water_ml,
            water_goal=goals.water_ml,
        )
        return clean_markdown(self._chat(prompt, max_tokens=200))
