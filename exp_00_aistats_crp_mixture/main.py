import joblib
import numpy as np
import os
from timeit import default_timer as timer

import crpmix.data
import crpmix.inference
import crpmix.metrics
import crpmix.plot


def main():
    exp_dir = 'exp_00_aistats_crp_mixture'
    plot_dir = os.path.join(exp_dir, 'plots')
    os.makedirs(plot_dir, exist_ok=True)

    num_particles = 1000
    num_samples = 100000
    n_jobs = 4
    num_sample_range = (num_samples * np.array([1e-2, 2e-2, 5e-2, 1e-1, 2e-1, 5e-1, 1.])).astype(int)

    inference_alg_strs = [
        'SMC',
        'Likelihood Weighting',
    ]

    aistats_crp_mixture = crpmix.data.load_aistats_crp_mixture()

    kl_curves_by_inference_alg = {}
    num_clusters_probs_by_inference_alg = {}
    for inference_alg_str in inference_alg_strs:
        samples = load_or_generate_samples(
            exp_dir=exp_dir,
            inference_alg_str=inference_alg_str,
            aistats_crp_mixture=aistats_crp_mixture,
            num_samples=num_samples,
            num_particles=num_particles,
            n_jobs=n_jobs)

        kl_curve = crpmix.metrics.kl_divergence_curve(
            samples=samples,
            reference_distribution=aistats_crp_mixture['num_clusters_posterior'],
            prefix_sizes=num_sample_range,
            support=aistats_crp_mixture['num_clusters_support'])
        for n, kl_divergence in kl_curve:
            print(f'{inference_alg_str} num samples={n}: KL={kl_divergence:.5f}')
        kl_curves_by_inference_alg[inference_alg_str] = kl_curve

        num_clusters_probs_by_inference_alg[inference_alg_str] = crpmix.metrics.normalize(
            crpmix.metrics.align_to_support(
                freqs=crpmix.metrics.empirical_frequencies(samples),
                support=aistats_crp_mixture['num_clusters_support']))

    crpmix.plot.plot_kl_divergence_by_num_samples(
        kl_curves_by_inference_alg=kl_curves_by_inference_alg,
        plot_dir=plot_dir,
        title='CRP Gaussian Mixture (AISTATS)')

    crpmix.plot.plot_num_clusters_distribution(
        empirical_num_clusters_probs_by_inference_alg=num_clusters_probs_by_inference_alg,
        reference_num_clusters_probs=aistats_crp_mixture['num_clusters_posterior'],
        plot_dir=plot_dir)

    print(f'Successfully completed Exp 00 AISTATS CRP Mixture with {num_samples} samples')


def load_or_generate_samples(exp_dir,
                             inference_alg_str,
                             aistats_crp_mixture,
                             num_samples: int,
                             num_particles: int,
                             n_jobs: int = 1,
                             seed: int = 1):
    samples_path = os.path.join(
        exp_dir,
        f'samples_alg={inference_alg_str}_num_samples={num_samples}_num_particles={num_particles}.joblib')

    # if samples do not exist, generate
    if not os.path.isfile(samples_path):
        print(f'Generating {num_samples} samples using {inference_alg_str}')
        start_time = timer()
        samples = crpmix.inference.sample_stream(
            inference_alg_str=inference_alg_str,
            observations=aistats_crp_mixture['observations'],
            hyperparameters=aistats_crp_mixture['hyperparameters'],
            num_samples=num_samples,
            num_particles=num_particles,
            seed=seed,
            n_jobs=n_jobs)
        runtime = timer() - start_time
        print(f'Generated {num_samples} samples using {inference_alg_str} in {runtime:.1f}s')

        joblib.dump(dict(samples=samples, runtime=runtime),
                    filename=samples_path)

    # read samples from disk
    stored_data = joblib.load(samples_path)
    print(f'Loaded samples for {samples_path}')
    return stored_data['samples']


if __name__ == '__main__':
    main()
