"""Kalman filter under missing data: four process/observation error scenarios."""
import os
import sys
import time
import argparse
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from masked_kalman.filters import KalmanFilterError
from masked_kalman.observations import missing_fraction
from masked_kalman.scenarios import scenario_grid
from masked_kalman.ssm import linear_gaussian_ssm, mask_observations
from masked_kalman.utils import (
    ExperimentLogger, result_arrays, compute_rmse, confidence_bands, band_coverage,
    stability_summary, format_metrics_table, save_metrics_table, format_runtime,
)

COLUMNS = ['rmse_a', 'coverage', 'mean_cond', 'runtime', 'status']


def get_system(N):
    """Coupled random-walk entities: each relaxes slightly toward its neighbours."""
    M = 0.9 * np.eye(N) + 0.05 * (np.eye(N, k=1) + np.eye(N, k=-1))
    M[0, 0] += 0.05
    M[-1, -1] += 0.05
    return {
        'M': M,
        'Q': 0.05 * np.eye(N),
        'R': 0.2 * np.eye(N),
        'mu0': np.zeros(N),
        'P0': np.eye(N),
    }


def get_scenarios(system):
    """Filter parameters: true Q/R scaled down and up by 10x."""
    Q, R = system['Q'], system['R']
    return scenario_grid(
        system['M'], system['mu0'], system['P0'],
        process_errors={'low_q': 0.1 * Q, 'high_q': 10.0 * Q},
        observation_errors={'low_r': 0.1 * R, 'high_r': 10.0 * R},
    )


def scenario_metrics(data, xs):
    """Accuracy and stability of one run's cached arrays against the true states."""
    lower, upper = confidence_bands(data['mu_a'], data['P_a'])
    return {
        'rmse_a': compute_rmse(data['mu_a'], xs.T),
        'coverage': band_coverage(xs.T, lower, upper),
        'mean_cond': stability_summary(data['cond_nums'])['mean_cond'],
    }


def run_scenario(scenario, Y, xs, joseph, solver):
    """Run one scenario and return its arrays and metrics."""
    row = {'status': 'OK'}
    try:
        t0 = time.perf_counter()
        result = scenario.run(Y, joseph=joseph, solver=solver)
        runtime = time.perf_counter() - t0
    except KalmanFilterError as e:
        row['status'], row['notes'] = 'FAIL', str(e)
        return None, row

    data = result_arrays(result)
    row.update(scenario_metrics(data, xs))
    row.update({'runtime_sec': runtime, 'runtime': format_runtime(runtime)})
    return data, row


def parse_args():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--T', type=int, default=200, help='number of time steps')
    parser.add_argument('--N', type=int, default=4, help='number of entities')
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--missing-prob', type=float, default=0.2, help='probability an entry is missing')
    parser.add_argument('--solver', choices=['cholesky', 'lu', 'inv'], default='cholesky')
    parser.add_argument('--no-joseph', action='store_true', help='use the standard covariance update')
    parser.add_argument('--no-cache', action='store_true', help='ignore cached scenario results')
    parser.add_argument('--results-root', default=os.path.join(os.path.dirname(__file__), '..', 'results'))
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    config = {
        'T': args.T, 'N': args.N, 'seed': args.seed, 'missing_prob': args.missing_prob,
        'joseph': not args.no_joseph, 'solver': args.solver,
    }
    logger = ExperimentLogger('exp_missing_data', results_root=args.results_root)
    t_start = time.perf_counter()

    rng = np.random.default_rng(args.seed)
    system = get_system(args.N)
    xs, ys = linear_gaussian_ssm(system['M'], system['Q'], system['R'], system['mu0'], system['P0'], args.T, rng)
    # A blackout over the middle tenth of the series
    blackout = (int(0.45 * args.T), int(0.55 * args.T))
    Y = mask_observations(ys, rng, missing_prob=args.missing_prob, blackouts=[blackout])
    print(f"Missing fraction per entity: {np.round(missing_fraction(Y), 3)}")

    table = {}
    for scenario in get_scenarios(system):
        if not args.no_cache and logger.scenario_result_exists(scenario.name, **config):
            data = logger.load_scenario_result(scenario.name, **config)
            table[scenario.name] = {'status': 'cached', **scenario_metrics(data, xs)}
            continue

        data, row = run_scenario(scenario, Y, xs, config['joseph'], config['solver'])
        logger.save_scenario_result(
            scenario.name, config, data or {}, metrics=row,
            runtime_sec=row.get('runtime_sec', 0.0),
            status='completed' if data else 'failed', notes=row.get('notes', ''),
        )
        table[scenario.name] = row

    print(format_metrics_table(table, COLUMNS, title='Missing-data scenarios'))
    logger.create_timestamped_run_dir()
    save_metrics_table(table, os.path.join(logger.get_metrics_dir(), 'scenarios.txt'), COLUMNS,
                       title='Missing-data scenarios')
    logger.log_experiment(config, duration_sec=time.perf_counter() - t_start)
