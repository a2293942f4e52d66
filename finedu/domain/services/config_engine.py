"""
CONFIG ENGINE
Load, validate, and expose catalogue configuration

RESPONSIBILITIES:
- Load YAML configuration files (market, products, lessons)
- Validate configuration integrity
- Expose read-only typed objects

RULES:
❌ No defaults if a config file is missing
✅ Fail fast on invalid config
✅ Deterministic output
"""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from finedu.domain.models import (
    Lesson,
    MarketConfig,
    Product,
    ProductCategory,
    ProductType,
    QuizQuestion,
    RiskLevel,
)


@dataclass(frozen=True)
class LessonCatalogue:
    """Ordered collection of daily lessons"""
    lessons: List[Lesson]

    @property
    def count(self) -> int:
        return len(self.lessons)

    def get(self, day: int) -> Optional[Lesson]:
        for lesson in self.lessons:
            if lesson.day == day:
                return lesson
        return None


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for catalogue configuration
    """

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._market_config: Optional[MarketConfig] = None
        self._seed_products: Optional[List[Product]] = None
        self._lessons: Optional[LessonCatalogue] = None

    def load_all(self) -> None:
        """Load all configuration files"""
        self._load_market()
        self._load_products()
        self._load_lessons()

    def _read_yaml(self, filename: str, label: str) -> Dict[str, Any]:
        path = self.config_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"{label} config not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"{label} config must be a mapping: {path}")
        return data

    def _load_market(self) -> None:
        """Load simulator defaults from market.yml"""
        data = self._read_yaml("market.yml", "Market")
        if "market" not in data:
            raise ValueError("Missing required field in market config: market")
        self._market_config = MarketConfig.from_dict(data["market"])

    def _load_products(self) -> None:
        """Load seed catalogue from products.yml"""
        data = self._read_yaml("products.yml", "Product")

        products = []
        for item in data.get("products", []):
            current_price = Decimal(str(item["current_price"]))
            products.append(
                Product(
                    name=item["name"],
                    type=ProductType(item["type"]),
                    category=ProductCategory(item["category"]),
                    risk_level=RiskLevel(item["risk_level"]),
                    expected_return=Decimal(str(item["expected_return"])),
                    min_investment=Decimal(str(item["min_investment"])),
                    current_price=current_price,
                    initial_price=Decimal(str(item.get("initial_price", current_price))),
                    description=item.get("description", ""),
                    is_active=item.get("is_active", True),
                )
            )

        names = [p.name for p in products]
        if len(names) != len(set(names)):
            raise ValueError("Duplicate product names found in configuration")

        self._seed_products = products

    def _load_lessons(self) -> None:
        """Load daily lessons from lessons.yml"""
        data = self._read_yaml("lessons.yml", "Lesson")

        lessons = []
        for item in data.get("lessons", []):
            quiz = item["quiz"]
            lessons.append(
                Lesson(
                    day=int(item["day"]),
                    title=item["title"],
                    content=item["content"],
                    quiz=QuizQuestion(
                        question=quiz["question"],
                        options=tuple(quiz["options"]),
                        correct_answer=int(quiz["correct_answer"]),
                        explanation=quiz.get("explanation", ""),
                    ),
                )
            )

        if not lessons:
            raise ValueError("At least one lesson must be configured")

        days = sorted(lesson.day for lesson in lessons)
        if days != list(range(1, len(lessons) + 1)):
            raise ValueError(f"Lesson days must run 1..{len(lessons)} without gaps, got {days}")

        self._lessons = LessonCatalogue(lessons=sorted(lessons, key=lambda l: l.day))

    # Public accessors

    @property
    def market_config(self) -> MarketConfig:
        if self._market_config is None:
            raise RuntimeError("Config not loaded. Call load_all() first")
        return self._market_config

    @property
    def seed_products(self) -> List[Product]:
        if self._seed_products is None:
            raise RuntimeError("Config not loaded. Call load_all() first")
        return list(self._seed_products)

    @property
    def lessons(self) -> LessonCatalogue:
        if self._lessons is None:
            raise RuntimeError("Config not loaded. Call load_all() first")
        return self._lessons
