"""
Example: Simple Gaussian chain.

x --[2]--[+]--[3]--> y
          |
        noise

Forward message on y by sum-product, then a backward message towards x
given an observation of y.
"""

import numpy as np
from forney import (
    AdditionNode,
    Edge,
    FactorGraph,
    GainNode,
    Gaussian,
    SumProduct,
    TerminalNode,
)


def main():
    with FactorGraph() as g:
        x = TerminalNode(Gaussian(m=1.0, V=0.5), id="x")
        noise = TerminalNode(Gaussian(m=0.0, V=0.1), id="noise")
        gain1 = GainNode(2.0, id="gain1")
        add = AdditionNode(id="add")
        gain2 = GainNode(3.0, id="gain2")
        y = TerminalNode(Gaussian(m=9.0, V=0.01), id="y")

        Edge(x.out, gain1.in1)
        Edge(gain1.out, add.in1)
        Edge(noise.out, add.in2)
        Edge(add.out, gain2.in1)
        Edge(gain2.out, y.out)

    # Forward
    print("Running sum-product on x --[2]--[+]--[3]--> y...")
    algo = SumProduct(g, goals=[gain2.out])
    forward = algo.execute()
    print(algo.schedule)
    print(f"Message towards y: mean = {forward.mean():.4f}, var = {forward.var():.4f}")

    # Verify by moment propagation
    m_expected = 3.0 * (2.0 * 1.0 + 0.0)
    v_expected = 9.0 * (4.0 * 0.5 + 0.1)
    print(f"Expected:          mean = {m_expected:.4f}, var = {v_expected:.4f}")
    print(f"Match: {np.isclose(forward.mean(), m_expected) and np.isclose(forward.var(), v_expected)}")

    # Backward: a measurement y ~ N(9, 0.01) seen from x
    backward = SumProduct(g, goals=[gain1.in1]).execute()
    print(f"\nMessage towards x: mean = {backward.mean():.4f}, var = {backward.var():.4f}")


if __name__ == "__main__":
    main()
