"""
Example: Mean and precision of i.i.d. Gaussian samples by variational Bayes.

y_k ~ N(m, 1/gamma),  m ~ N(0, 100),  gamma ~ Gamma(1, 0.01)

        m_prior        gamma_prior
           |                |
         [=]--- ... ---   [=]--- ...
           |                |
         mean           precision
           \\              /
            [N] -- y_k   (one per sample)

Mean-field factorization q(m) q(gamma), with the observed edges in their
own group.
"""

import numpy as np
from forney import (
    Delta,
    Edge,
    EqualityNode,
    FactorGraph,
    Gamma,
    Gaussian,
    GaussianNode,
    TerminalNode,
    VariationalBayes,
)


def main():
    rng = np.random.default_rng(0)
    data = rng.normal(loc=3.0, scale=0.5, size=50)
    n = len(data)

    with FactorGraph() as g:
        nodes = [GaussianNode(form="precision", id=f"g{k}") for k in range(n)]
        y_edges = [Edge(node.out, TerminalNode(float(y), id=f"y{k}").out) for k, (node, y) in enumerate(zip(nodes, data))]

        m_eq = EqualityNode(n + 1, id="m_eq")
        p_eq = EqualityNode(n + 1, id="p_eq")
        m_edges = [Edge(TerminalNode(Gaussian(m=0.0, V=100.0), id="m_prior"), m_eq)]
        p_edges = [Edge(TerminalNode(Gamma(1.0, 0.01), id="p_prior"), p_eq)]
        for node in nodes:
            m_edges.append(Edge(m_eq, node.mean))
            p_edges.append(Edge(p_eq, node.precision))

    groups = {tuple(y_edges): Delta, tuple(m_edges): Gaussian, tuple(p_edges): Gamma}

    print(f"Running variational Bayes on {n} samples...")
    algo = VariationalBayes(g, factorization=groups, n_iterations=30)
    algo.execute()

    q_mean = m_edges[1].marginal
    q_prec = p_edges[1].marginal
    print(f"\nq(m):     mean = {q_mean.mean():.4f}, var = {q_mean.var():.6f}")
    print(f"q(gamma): mean = {q_prec.mean():.4f}")

    # Compare with sample statistics
    print("\n--- Sample statistics ---")
    print(f"mean      = {data.mean():.4f}")
    print(f"precision = {1.0 / data.var():.4f}")


if __name__ == "__main__":
    main()
