"""
Risk Model Training - Binary Classification
Synthetic labelled feature vectors, MinMaxScaler + LogisticRegression (lbfgs)
Saved in MLflow format for ModelStrategy.from_path
"""
import argparse
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score
)
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import MinMaxScaler

from feature_store.constants import KNOWN_CURRENCIES, KNOWN_TRANSACTION_TYPES
from feature_store.entities import FEATURE_COLUMNS

logger = logging.getLogger(__name__)

FRAUD_RATE = 0.1
SEED = 42


def generate_synthetic_data(samples: int, seed: int = SEED) -> pd.DataFrame:
    """
    Labelled feature rows in FEATURE_COLUMNS order plus `is_fraud`
    Fraud rows skew towards large amounts, bursts and night hours
    """
    rng = np.random.default_rng(seed)
    is_fraud = rng.random(samples) < FRAUD_RATE

    amount = np.where(is_fraud, rng.uniform(5_000, 80_000, samples), rng.uniform(1, 10_000, samples))
    frequency = np.where(is_fraud, rng.integers(5, 50, samples), rng.integers(0, 12, samples))
    hour = np.where(
        is_fraud & (rng.random(samples) < 0.6),
        rng.choice([0, 1, 2, 3, 4, 5, 23], samples),
        rng.integers(0, 24, samples)
    )
    day_of_week = rng.integers(1, 8, samples)
    count_7d = frequency + rng.integers(0, 60, samples)
    total_24h = amount * np.maximum(frequency, 1) * rng.uniform(0.5, 1.5, samples)
    total_7d = total_24h + rng.uniform(0, 200_000, samples)

    frame = pd.DataFrame({
        "amount": amount,
        "transaction_type_idx": rng.integers(0, len(KNOWN_TRANSACTION_TYPES), samples),
        "currency_idx": rng.integers(0, len(KNOWN_CURRENCIES), samples),
        "has_geolocation": np.where(is_fraud, rng.random(samples) < 0.5, rng.random(samples) < 0.9).astype(int),
        "hour_of_day": hour,
        "day_of_week": day_of_week,
        "day_of_month": rng.integers(1, 29, samples),
        "month": rng.integers(1, 13, samples),
        "is_weekend": (day_of_week >= 6).astype(int),
        "txn_count_24h": frequency,
        "txn_count_7d": count_7d,
        "total_amount_24h": total_24h,
        "total_amount_7d": total_7d,
        "avg_amount_7d": total_7d / np.maximum(count_7d, 1),
        "amount_variance_7d": rng.uniform(0, 500, samples) * np.where(is_fraud, 20, 1),
        "velocity_frequency_24h": frequency,
        "velocity_amount_24h": total_24h,
        "unique_merchants_24h": np.minimum(frequency, rng.integers(0, 10, samples)),
        "unique_countries_24h": np.where(is_fraud, rng.integers(1, 5, samples), rng.integers(0, 2, samples)),
        "network_risk_score": np.where(is_fraud, rng.uniform(0.2, 1.0, samples), rng.uniform(0.0, 0.3, samples)),
        "network_associated_fraud_count": np.where(is_fraud, rng.integers(1, 6, samples), rng.integers(0, 2, samples)),
    })

    frame = frame[FEATURE_COLUMNS].astype(float)
    frame["is_fraud"] = is_fraud.astype(int)
    return frame


def build_pipeline() -> Pipeline:
    """MinMax normalisation followed by L-BFGS logistic regression"""
    return Pipeline(steps=[
        ("scaler", MinMaxScaler()),
        ("classifier", LogisticRegression(solver="lbfgs", max_iter=1000, random_state=SEED))
    ])


def evaluate(model: Pipeline, features: pd.DataFrame, labels: pd.Series) -> Dict[str, float]:
    """Binary classification metrics on held-out data"""
    predictions = model.predict(features)
    probabilities = model.predict_proba(features)[:, 1]

    return {
        "accuracy": round(float(accuracy_score(labels, predictions)), 4),
        "precision": round(float(precision_score(labels, predictions, zero_division=0)), 4),
        "recall": round(float(recall_score(labels, predictions, zero_division=0)), 4),
        "f1": round(float(f1_score(labels, predictions, zero_division=0)), 4),
        "roc_auc": round(float(roc_auc_score(labels, probabilities)), 4),
        "pr_auc": round(float(average_precision_score(labels, probabilities)), 4),
    }


def save_model(model: Pipeline, metrics: Dict, output: str) -> Path:
    """Save MLflow model directory with metrics.json beside MLmodel"""
    import mlflow.sklearn

    output_path = Path(output)
    mlflow.sklearn.save_model(model, str(output_path))

    metrics_path = output_path / "metrics.json"
    metrics_path.write_text(json.dumps(metrics, indent=2))
    logger.info(f"📄 Metrics saved: {metrics_path}")
    return output_path


def train(samples: int = 5000, seed: int = SEED):
    """Train and evaluate on an 80/20 split; returns (model, metrics)"""
    data = generate_synthetic_data(samples, seed)
    features, labels = data[FEATURE_COLUMNS], data["is_fraud"]

    train_x, test_x, train_y, test_y = train_test_split(
        features, labels, test_size=0.2, random_state=seed, stratify=labels
    )
    logger.info(f"📊 Train: {len(train_x):,}, Test: {len(test_x):,}")

    model = build_pipeline()
    model.fit(train_x, train_y)

    metrics = evaluate(model, test_x, test_y)
    metrics.update({
        "model_version": f"lbfgs-{uuid.uuid4().hex[:8]}",
        "algorithm": "LbfgsLogisticRegression",
        "samples": samples,
        "trained_at": datetime.now(timezone.utc).isoformat(),
    })
    return model, metrics


def main(output: str, samples: int = 5000, seed: int = SEED) -> int:
    print("=" * 60)
    print("🎯 Train Risk Model (binary, logistic regression)")
    print("=" * 60)

    model, metrics = train(samples, seed)
    print(f"📊 Accuracy: {metrics['accuracy']:.2%}")
    print(f"📊 F1 Score: {metrics['f1']:.2%}")
    print(f"📊 ROC AUC: {metrics['roc_auc']:.4f}")

    print(f"\n💾 Saving: {output}")
    save_model(model, metrics, output)

    print(f"✅ Model version: {metrics['model_version']}")
    return 0


def cli(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Train the transaction risk model")
    parser.add_argument('--output', required=True)
    parser.add_argument('--samples', type=int, default=5000)
    parser.add_argument('--seed', type=int, default=SEED)
    args = parser.parse_args(argv)

    return main(args.output, args.samples, args.seed)


if __name__ == "__main__":
    sys.exit(cli())
