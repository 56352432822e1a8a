"""Simulated ensemble prediction.

Nothing here is trained. The per-model numbers are random perturbations of
the last close, weighted into an "ensemble" for display, and every payload
is flagged `simulated`. Pass a seeded generator for reproducible output.
The anomaly score, anomaly list and direction probabilities are computed
from the series itself and do not depend on the generator.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass
from typing import Any

from core.analyst import StockAnalysis
from core.anomalies import Anomaly, Probabilities, anomaly_score, calculate_probabilities, detect_anomalies

LOGGER = logging.getLogger("stocklens.predictor")


@dataclass(frozen=True)
class SimulatedModel:
    name: str
    spread: float
    confidence: float
    weight: float


ENSEMBLE = (
    SimulatedModel("lightgbm", spread=0.08, confidence=0.82, weight=0.35),
    SimulatedModel("xgboost", spread=0.07, confidence=0.78, weight=0.35),
    SimulatedModel("catboost", spread=0.09, confidence=0.75, weight=0.30),
)
RANGE_SPREAD = 0.04
CONFIDENCE_BASE = 0.75
CONFIDENCE_SPREAD = 0.2


@dataclass(frozen=True)
class ModelPrediction:
    name: str
    prediction: float
    confidence: float
    weight: float


@dataclass(frozen=True)
class Prediction:
    """Next-session estimate for display and export."""

    target_price: float
    predicted_high: float
    predicted_low: float
    confidence: float
    volatility: float
    recommendation: str
    risk_level: str
    risk_score: int
    models: tuple[ModelPrediction, ...]
    anomaly_score: float
    anomalies: tuple[Anomaly, ...] = ()
    probabilities: Probabilities | None = None
    simulated: bool = True

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["models"] = {item.name: asdict(item) for item in self.models}
        payload["anomalies"] = [item.to_dict() for item in self.anomalies]
        payload["probabilities"] = self.probabilities.to_dict() if self.probabilities else None
        return payload


def assess_risk(
    volatility_pct: float,
    rsi: float | None,
    confidence: float,
    last_close: float,
    sma20: float | None,
) -> tuple[str, int]:
    """Score volatility, RSI extremes, confidence and distance from SMA20 into Low/Medium/High."""
    score = 0
    if volatility_pct > 30:
        score += 3
    elif volatility_pct > 15:
        score += 2
    else:
        score += 1

    if rsi is not None:
        if rsi > 80 or rsi < 20:
            score += 2
        elif rsi > 70 or rsi < 30:
            score += 1

    if confidence < 0.5:
        score += 2
    elif confidence < 0.7:
        score += 1

    if sma20:
        deviation = abs(last_close - sma20) / sma20
        if deviation > 0.1:
            score += 2
        elif deviation > 0.05:
            score += 1

    if score <= 3:
        return "Low", score
    if score <= 6:
        return "Medium", score
    return "High", score


def simulate_prediction(analysis: StockAnalysis, rng: random.Random | None = None) -> Prediction:
    rng = rng if rng is not None else random.Random()
    trends = analysis.trends
    last_close = float(analysis.data["close"].iloc[-1])

    models = tuple(
        ModelPrediction(
            name=model.name,
            prediction=last_close * (1 + (rng.random() - 0.5) * model.spread),
            confidence=model.confidence,
            weight=model.weight,
        )
        for model in ENSEMBLE
    )
    target = sum(item.prediction * item.weight for item in models)
    predicted_high = target * (1 + rng.random() * RANGE_SPREAD)
    predicted_low = target * (1 - rng.random() * RANGE_SPREAD)
    confidence = CONFIDENCE_BASE + rng.random() * CONFIDENCE_SPREAD
    prices = analysis.data["close"].astype(float).tolist()
    volumes = analysis.data["volume"].astype(float).tolist()
    risk_level, risk_score = assess_risk(
        trends.volatility * 100,
        trends.rsi,
        confidence,
        last_close,
        trends.sma20,
    )

    prediction = Prediction(
        target_price=target,
        predicted_high=predicted_high,
        predicted_low=predicted_low,
        confidence=confidence,
        volatility=trends.volatility,
        recommendation=trends.recommendation,
        risk_level=risk_level,
        risk_score=risk_score,
        models=models,
        anomaly_score=anomaly_score(prices, volumes),
        anomalies=tuple(detect_anomalies(analysis.data)),
        probabilities=calculate_probabilities(trends.rsi, trends.macd, last_close, trends.sma20, target),
    )
    LOGGER.info("Simulated prediction for %s: %.2f (%s risk)", analysis.source_name, target, risk_level)
    return prediction
