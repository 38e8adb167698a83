"""
Experiment Logger - cache filter runs per scenario and log them to CSV.

Each scenario's filter output is stored as a compressed .npz keyed on the
scenario name and the experiment config, so reruns only recompute what changed.
"""
import os
import csv
import hashlib
import numpy as np
from datetime import datetime
from typing import Dict, List, Optional, Any


class ExperimentLogger:
    """
    Logger for scenario filter runs.

    Usage:
        logger = ExperimentLogger('exp_missing_data', results_root='results')
        config = {'T': 100, 'N': 4, 'seed': 42, 'missing_prob': 0.2}

        data = logger.load_scenario_result('high_q/low_r', **config)
        if data is None:
            result = kalman_filter(...)
            logger.save_scenario_result('high_q/low_r', config, result_arrays(result))

        run_dir = logger.create_timestamped_run_dir()
    """

    LOG_COLUMNS = [
        'timestamp', 'experiment_name', 'scenario',
        'T', 'N', 'seed', 'missing_prob', 'joseph', 'solver',
        'rmse_a', 'coverage', 'mean_cond', 'runtime_sec',
        'cache_file', 'status', 'notes'
    ]

    # Config keys that identify a cached result
    CACHE_KEYS = ['T', 'N', 'seed', 'missing_prob', 'joseph', 'solver']

    METRIC_FORMATS = {'rmse_a': '.4f', 'coverage': '.3f', 'mean_cond': '.2f'}

    def __init__(self, experiment_name: str, results_root: Optional[str] = None):
        """
        Parameters
        ----------
        experiment_name : str
            Name of the experiment; logs go to {results_root}/{experiment_name}/.
        results_root : str, optional
            Root directory for results (default: ./results).
        """
        self.experiment_name = experiment_name
        self._results_root = results_root if results_root is not None else os.path.join(os.getcwd(), 'results')
        self.log_dir = os.path.join(self._results_root, experiment_name)
        self.log_file = os.path.join(self.log_dir, 'scenario_log.csv')
        self.cache_dir = os.path.join(self.log_dir, 'cache')

        os.makedirs(self.cache_dir, exist_ok=True)
        if not os.path.exists(self.log_file):
            with open(self.log_file, 'w', newline='') as f:
                csv.DictWriter(f, fieldnames=self.LOG_COLUMNS).writeheader()

        self._current_run_dir: Optional[str] = None

    def _config_hash(self, scenario: str, config: Dict) -> str:
        """Short md5 of the scenario name plus the cache-relevant config values."""
        key_parts = [scenario] + [f"{k}={config[k]}" for k in self.CACHE_KEYS if k in config]
        return hashlib.md5("_".join(key_parts).encode()).hexdigest()[:12]

    def get_cache_path(self, scenario: str, config: Dict) -> str:
        """Full path of the cache file for a scenario + config."""
        safe_name = scenario.replace('/', '-').replace(' ', '_')
        filename = f"{safe_name}_{self._config_hash(scenario, config)}.npz"
        return os.path.join(self.cache_dir, filename)

    def scenario_result_exists(self, scenario: str, **config) -> bool:
        return os.path.exists(self.get_cache_path(scenario, config))

    def save_scenario_result(
        self,
        scenario: str,
        config: Dict[str, Any],
        data: Dict[str, np.ndarray],
        metrics: Optional[Dict[str, float]] = None,
        runtime_sec: float = 0.0,
        status: str = 'completed',
        notes: str = ''
    ) -> str:
        """
        Cache a scenario's arrays and append a row to the CSV log.

        Parameters
        ----------
        scenario : str
            Scenario name
        config : dict
            Experiment configuration
        data : dict
            Arrays to cache, e.g. {'mu_f': ..., 'P_f': ..., 'mu_a': ..., 'P_a': ...}.
            Nothing is cached when empty (failed runs).
        metrics : dict, optional
            Summary metrics {rmse_a, coverage, mean_cond}
        runtime_sec : float
            Filter runtime in seconds
        status : str
            'completed' or 'failed'
        notes : str
            Optional notes (e.g. the failure message)

        Returns
        -------
        str
            Path of the cache file ('' when nothing was cached)
        """
        cache_path = ''
        if data:
            cache_path = self.get_cache_path(scenario, config)
            np.savez_compressed(cache_path, **data)

        metrics = metrics or {}
        row = {
            'timestamp': datetime.now().strftime('%Y-%m-%d_%H-%M-%S'),
            'experiment_name': self.experiment_name,
            'scenario': scenario,
            'runtime_sec': f"{runtime_sec:.4f}",
            'cache_file': os.path.basename(cache_path),
            'status': status,
            'notes': notes,
        }
        for key in self.CACHE_KEYS:
            row[key] = config.get(key, '')
        for key, fmt in self.METRIC_FORMATS.items():
            value = metrics.get(key)
            row[key] = f"{value:{fmt}}" if value is not None else ''

        with open(self.log_file, 'a', newline='') as f:
            csv.DictWriter(f, fieldnames=self.LOG_COLUMNS).writerow(row)

        if cache_path:
            print(f"  Cached {scenario}: {os.path.basename(cache_path)}")
        return cache_path

    def load_scenario_result(self, scenario: str, **config) -> Optional[Dict[str, np.ndarray]]:
        """Load cached arrays for a scenario, or None if not cached."""
        cache_path = self.get_cache_path(scenario, config)
        if not os.path.exists(cache_path):
            return None

        with np.load(cache_path) as npz:
            data = {key: npz[key] for key in npz.files}

        print(f"  Loaded cached {scenario}: {os.path.basename(cache_path)}")
        return data

    def get_cached_scenarios(self, **config) -> List[str]:
        """Scenarios with a completed log row matching config and a cache file on disk."""
        cached = []
        with open(self.log_file, 'r', newline='') as f:
            for row in csv.DictReader(f):
                if row.get('status') != 'completed':
                    continue
                if any(str(row.get(k, '')) != str(config[k]) for k in self.CACHE_KEYS if k in config):
                    continue
                cache_file = row.get('cache_file', '')
                if cache_file and os.path.exists(os.path.join(self.cache_dir, cache_file)):
                    if row['scenario'] not in cached:
                        cached.append(row['scenario'])
        return cached

    def clear_all_cache(self) -> int:
        """Remove all cached .npz files; returns the number removed."""
        count = 0
        for name in os.listdir(self.cache_dir):
            if name.endswith('.npz'):
                os.remove(os.path.join(self.cache_dir, name))
                count += 1
        print(f"Removed {count} cache files.")
        return count

    def create_timestamped_run_dir(self, timestamp: Optional[str] = None) -> str:
        """
        Create a timestamped directory for reports.

        Parameters
        ----------
        timestamp : str, optional
            Custom timestamp (YYYY-MM-DD_HH-MM-SS). Defaults to now.

        Returns
        -------
        str
            Path to the run directory
        """
        if timestamp is None:
            timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')

        self._current_run_dir = os.path.join(self.log_dir, timestamp)
        os.makedirs(self._current_run_dir, exist_ok=True)
        return self._current_run_dir

    def get_metrics_dir(self, create: bool = True) -> str:
        """Get the metrics directory for the current run."""
        if self._current_run_dir is None:
            raise RuntimeError("Call create_timestamped_run_dir() first")

        metrics_dir = os.path.join(self._current_run_dir, 'metrics')
        if create:
            os.makedirs(metrics_dir, exist_ok=True)
        return metrics_dir

    def log_experiment(self, config: Dict[str, Any], duration_sec: float = 0.0, notes: str = '') -> None:
        """Append a completion summary to experiment_log.txt."""
        timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
        log_path = os.path.join(self.log_dir, 'experiment_log.txt')

        with open(log_path, 'a') as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"Timestamp: {timestamp}\n")
            f.write(f"Duration: {duration_sec:.1f}s\n")
            for key, val in config.items():
                f.write(f"  {key}: {val}\n")
            if notes:
                f.write(f"Notes: {notes}\n")

        print(f"Experiment completed in {duration_sec:.1f}s")


def result_arrays(result) -> Dict[str, np.ndarray]:
    """Arrays of a KalmanFilterResult in the form the logger caches."""
    return {
        'mu_f': result.mu_f,
        'P_f': result.P_f,
        'mu_a': result.mu_a,
        'P_a': result.P_a,
        'cond_nums': result.cond_nums,
    }
