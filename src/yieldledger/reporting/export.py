"""Export functionality for CSV and JSON."""

import json

import numpy as np
import pandas as pd

from ..engine.rate_curve import multiplier, multiplier_to_float
from ..ledger import YieldLedger
from ..simulation.runner import SimulationResult


def accounts_frame(ledger: YieldLedger) -> pd.DataFrame:
    """One row per known account with realized, pending and staked amounts."""
    snapshot = ledger.snapshot()
    rows = []
    for account in snapshot.accounts:
        row = {
            'account': account['account'],
            'realized': account['realized'],
            'balance': account['balance'],
            'pending_base': account['pending_base'],
            'last_claim': account['last_claim'],
        }
        for pool_id, staked in account['staked'].items():
            row[f'pool_{pool_id}_staked'] = staked
        rows.append(row)
    return pd.DataFrame(rows)


def multiplier_curve_frame(multiplier_max: int, time_threshold: int, points: int = 50) -> pd.DataFrame:
    """Sample the staking multiplier from 0 to 1.5x the threshold."""
    times = np.linspace(0, time_threshold * 1.5, points).astype(np.int64)
    values = [multiplier(multiplier_max, time_threshold, int(t)) for t in times]
    return pd.DataFrame({
        't_seconds': times,
        't_days': times / 86_400,
        'multiplier': [multiplier_to_float(v) for v in values],
    })


def export_csv(result: SimulationResult, filepath: str):
    """Export simulation metrics to CSV."""
    df = pd.DataFrame(result.metrics_over_time)
    df.to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    snapshot = result.final_snapshot
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'metrics_over_time': result.metrics_over_time,
        'final_metrics': result.final_metrics,
        'final_snapshot': {
            'timestamp': snapshot.timestamp,
            'minted_supply': snapshot.minted_supply,
            'total_supply': snapshot.total_supply,
            'max_supply': snapshot.max_supply,
            'yearly_rate': snapshot.yearly_rate,
            'pools': snapshot.pools,
            'active_stakers': snapshot.active_stakers,
        },
        'invariant_errors': result.invariant_errors,
        'rejected_operations': result.rejected_operations,
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)
