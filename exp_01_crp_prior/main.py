import joblib
import numpy as np
import os

import crpmix.crp
import crpmix.metrics
import crpmix.plot


def main():
    # set seed
    rng = np.random.default_rng(1)

    # create directories
    exp_dir = 'exp_01_crp_prior'
    plot_dir = os.path.join(exp_dir, 'plots')
    os.makedirs(plot_dir, exist_ok=True)

    T = 10  # number of customers
    num_samples = 10000  # number of samples to draw from CRP(alpha)
    alphas = [1.1, 1.72, 10.78, 15.37]
    num_sample_range = np.logspace(1, 4, 7).astype(int)

    kl_curves_by_alpha = {}
    for alpha in alphas:
        samples = sample_num_tables_from_crp(
            T=T,
            alpha=alpha,
            exp_dir=exp_dir,
            num_samples=num_samples,
            rng=rng)

        analytical_num_tables_distribution = crpmix.crp.crp_num_tables_distribution(T=T, alpha=alpha)

        kl_curve = crpmix.metrics.kl_divergence_curve(
            samples=samples,
            reference_distribution=analytical_num_tables_distribution,
            prefix_sizes=num_sample_range)
        print(f'alpha={alpha}: KL after {num_samples} samples = {kl_curve[-1][1]:.6f}')
        kl_curves_by_alpha[rf'$\alpha$={alpha}'] = kl_curve

    crpmix.plot.plot_kl_divergence_by_num_samples(
        kl_curves_by_inference_alg=kl_curves_by_alpha,
        plot_dir=plot_dir,
        title=f'CRP Prior, Number of Tables after {T} Customers')

    print(f'Successfully completed Exp 01 CRP Prior with {num_samples} samples')


def sample_num_tables_from_crp(T,
                               alpha,
                               exp_dir,
                               num_samples,
                               rng):
    crp_samples_path = os.path.join(exp_dir, f'crp_samples_T={T}_alpha={alpha}_num_samples={num_samples}.joblib')
    if os.path.isfile(crp_samples_path):
        samples = joblib.load(crp_samples_path)
        print(f'Loaded samples for {crp_samples_path}')
        assert len(samples) == num_samples
    else:
        samples = []
        for _ in range(num_samples):
            table_occupancies, customer_tables = crpmix.crp.sample_sequence_from_crp(
                T=T,
                alpha=alpha,
                rng=rng)
            # prior samples are unweighted
            samples.append((int(np.max(customer_tables)), 0.))
        joblib.dump(samples, filename=crp_samples_path)
        print(f'Generated samples for {crp_samples_path}')
    return samples


if __name__ == '__main__':
    main()
