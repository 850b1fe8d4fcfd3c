"""
Generate Deterministic Campaign Results
=======================================

Creates a fake inference-service response with a hardcoded seed, so the
analysis path (`cnnfi analyze`) can be exercised without the service.

Output matches the campaign result response:
{golden_results: {predictions, metrics}, fault_results: {predictions, metrics}}
"""

import argparse
import json
import numpy as np


def generate_results(num_samples=100, num_classes=10, sdc_prob=0.1, crash_prob=0.02, seed=42):
    """
    Golden predictions are uniform labels; 90% of them are "correct".
    Each faulty prediction is the golden label, a different label (SDC),
    or -1 (crashed run).
    """
    rng = np.random.default_rng(seed)

    labels = rng.integers(0, num_classes, num_samples)
    golden = labels.copy()
    wrong = rng.random(num_samples) < 0.1
    golden[wrong] = (golden[wrong] + 1) % num_classes

    faulty = golden.copy()
    roll = rng.random(num_samples)
    sdc = roll < sdc_prob
    faulty[sdc] = (faulty[sdc] + rng.integers(1, num_classes, int(sdc.sum()))) % num_classes
    crashed = (roll >= sdc_prob) & (roll < sdc_prob + crash_prob)
    faulty[crashed] = -1

    def metrics(pred):
        correct = int(np.count_nonzero(pred == labels))
        return {"accuracy": correct / num_samples, "correct_predictions": correct,
                "total_samples": num_samples}

    return {
        "golden_results": {"predictions": golden.tolist(), "metrics": metrics(golden)},
        "fault_results": {"predictions": faulty.tolist(), "metrics": metrics(faulty)},
    }


def save_results_json(results, filename="campaign_results.json"):
    with open(filename, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"Saved {len(results['golden_results']['predictions'])} samples to {filename}")


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Generate mock campaign results")
    p.add_argument("--samples", type=int, default=100)
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--out", default="tools/campaign_results.json")
    args = p.parse_args()

    print(f"Generating deterministic campaign results (seed={args.seed})...")
    save_results_json(generate_results(num_samples=args.samples, seed=args.seed), args.out)
    print("Done! Analyze with: cnnfi analyze --results " + args.out)
