"""
Chart generation for Monte Carlo results.

Fan chart of equity percentiles across paths plus the distribution of final
balances.
"""
from pathlib import Path
from typing import Union

import matplotlib.pyplot as plt

from .simulation_types import MonteCarloResult


def plot_monte_carlo(
    result: MonteCarloResult,
    output_path: Union[str, Path],
    initial_balance: float,
) -> Path:
    """
    Save a two-panel chart (equity fan, final balance histogram).

    Args:
        result: Completed Monte Carlo result
        output_path: PNG destination (parent directories are created)
        initial_balance: Drawn as a reference line

    Returns:
        Path to the generated chart
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    stats = result.statistics

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))
    fig.suptitle(
        f'Monte Carlo ({result.mode}): {stats.completed_paths}/{stats.requested_paths} paths',
        fontsize=14, fontweight='bold',
    )

    bands = result.percentile_bands()
    if not bands.empty:
        steps = bands.index
        ax1.fill_between(steps, bands['p5'], bands['p95'], color='steelblue', alpha=0.2, label='5-95%')
        ax1.fill_between(steps, bands['p25'], bands['p75'], color='steelblue', alpha=0.4, label='25-75%')
        ax1.plot(steps, bands['p50'], color='navy', linewidth=2, label='Median')
    ax1.axhline(y=initial_balance, color='black', linestyle='--', linewidth=1, label='Initial balance')
    ax1.set_xlabel('Step')
    ax1.set_ylabel('Balance')
    ax1.set_title('Equity percentiles')
    ax1.legend()

    finals = [p.final_balance for p in result.paths]
    if finals:
        ax2.hist(finals, bins=min(50, max(5, len(finals) // 5)), color='steelblue', alpha=0.7)
        ax2.axvline(x=stats.percentile_5, color='indianred', linestyle='--', linewidth=2,
                    label=f'5th percentile ({stats.percentile_5:.0f})')
        ax2.axvline(x=stats.median, color='navy', linewidth=2, label=f'Median ({stats.median:.0f})')
        ax2.legend()
    ax2.set_xlabel('Final balance')
    ax2.set_ylabel('Paths')
    ax2.set_title('Final balance distribution')

    plt.tight_layout(rect=[0, 0, 1, 0.95])
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path
