"""
Utilities for generating scenario metric tables.
"""
from typing import Dict, List, Optional


def format_metrics_table(
    metrics: Dict[str, Dict],
    columns: List[str],
    title: str = 'Scenario Comparison',
    column_widths: Optional[Dict[str, int]] = None,
    float_format: str = '.3f',
    na_string: str = 'N/A'
) -> str:
    """
    Render a fixed-width metrics table.

    Parameters
    ----------
    metrics : dict
        Scenario name -> {column_name: value}. A None value prints as na_string.
    columns : list of str
        Column names to include (in order)
    title : str
        Table title
    column_widths : dict, optional
        Column name -> width mapping; 'Scenario' sets the first column.
    float_format : str
        Format string for float values
    na_string : str
        String to display for missing values

    Example
    -------
    >>> print(format_metrics_table(
    ...     {'low_q/low_r': {'rmse_a': 0.41, 'coverage': 0.95}},
    ...     columns=['rmse_a', 'coverage']))
    """
    if column_widths is None:
        column_widths = {}
    name_width = column_widths.get('Scenario', max([len('Scenario')] + [len(k) for k in metrics]) + 2)

    header_parts = [f"{'Scenario':<{name_width}}"]
    for col in columns:
        width = column_widths.get(col, 12)
        display_name = col.replace('_', ' ').title()
        header_parts.append(f"{display_name:>{width}}")
    header = ' '.join(header_parts)
    total_width = len(header)

    lines = ['=' * total_width, title, '=' * total_width, '', header, '-' * total_width]
    for name, m in metrics.items():
        row_parts = [f"{name:<{name_width}}"]
        for col in columns:
            width = column_widths.get(col, 12)
            value = m.get(col)
            if value is None:
                formatted = na_string
            elif isinstance(value, float):
                formatted = f"{value:{float_format}}"
            else:
                formatted = str(value)
            row_parts.append(f"{formatted:>{width}}")
        lines.append(' '.join(row_parts))
    lines.append('=' * total_width)

    return '\n'.join(lines)


def save_metrics_table(metrics: Dict[str, Dict], save_path: str, columns: List[str], **kwargs) -> None:
    """Write `format_metrics_table(metrics, columns, **kwargs)` to save_path."""
    with open(save_path, 'w') as f:
        f.write(format_metrics_table(metrics, columns, **kwargs) + '\n')

    print(f'Table saved to: {save_path}')


def format_runtime(seconds: float) -> str:
    """
    Format runtime in human-readable form.

    Parameters
    ----------
    seconds : float
        Runtime in seconds

    Returns
    -------
    str
        Formatted runtime string
    """
    if seconds < 0.001:
        return f"{seconds * 1000000:.1f}us"
    elif seconds < 1.0:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}min"
    return f"{seconds / 3600:.1f}h"
