# Common plotting functions
import matplotlib.pyplot as plt
import numpy as np
import os
import seaborn as sns

from crpmix.metrics import log10_curve

inference_algs_color_map = {
    'SMC': '#05A',
    'Likelihood Weighting': 'tab:orange',
    'Prior Samples': 'tab:green',
}


def plot_kl_divergence_by_num_samples(kl_curves_by_inference_alg: dict,
                                      plot_dir: str,
                                      title: str = None):
    sns.set_style('whitegrid')
    for inference_alg_str, kl_curve in kl_curves_by_inference_alg.items():
        log_kl_curve = log10_curve(kl_curve)
        if len(log_kl_curve) == 0:
            continue
        log_num_samples, log_kl_divergences = zip(*log_kl_curve)
        plt.plot(log_num_samples,
                 log_kl_divergences,
                 label=inference_alg_str,
                 color=inference_algs_color_map.get(inference_alg_str, None),
                 marker='o')

    plt.xlabel(r'$\log_{10}$ Number of Samples')
    plt.ylabel(r'$\log_{10}$ KL(Empirical || Posterior)')
    if title is not None:
        plt.title(title)
    plt.legend()
    plt.savefig(os.path.join(plot_dir, 'kl_divergence_by_num_samples.png'),
                bbox_inches='tight',
                dpi=300)
    # plt.show()
    plt.close()


def plot_num_clusters_distribution(empirical_num_clusters_probs_by_inference_alg: dict,
                                   reference_num_clusters_probs: np.ndarray,
                                   plot_dir: str):
    num_clusters_support = 1 + np.arange(len(reference_num_clusters_probs))
    num_bars = 1 + len(empirical_num_clusters_probs_by_inference_alg)
    width = 0.8 / num_bars

    plt.bar(num_clusters_support - 0.4 + width / 2,
            reference_num_clusters_probs,
            width=width,
            label='Reference',
            color='k')
    for bar_idx, (inference_alg_str, empirical_num_clusters_probs) in \
            enumerate(empirical_num_clusters_probs_by_inference_alg.items()):
        plt.bar(num_clusters_support - 0.4 + (bar_idx + 1.5) * width,
                empirical_num_clusters_probs,
                width=width,
                label=inference_alg_str,
                color=inference_algs_color_map.get(inference_alg_str, None))

    plt.xticks(num_clusters_support)
    plt.xlabel('Number of Clusters')
    plt.ylabel('P(Number of Clusters)')
    plt.legend()
    plt.savefig(os.path.join(plot_dir, 'num_clusters_distribution.png'),
                bbox_inches='tight',
                dpi=300)
    # plt.show()
    plt.close()
