"""
Example: Feedback loop solved by loopy sum-product.

   noise --[+]--> [0.5] --> [1.0] --+
            ^                       |
            +-----------------------+

The cycle is cut by a breaker message on the driver output; the schedule is
then repeated until the message settles at N(1, 1/30).
"""

import numpy as np
from forney import (
    AdditionNode,
    CycleError,
    Edge,
    FactorGraph,
    GainNode,
    Gaussian,
    SumProduct,
    TerminalNode,
)


def main():
    with FactorGraph() as g:
        driver = GainNode(1.0, id="driver")
        inhibitor = GainNode(0.5, id="inhibitor")
        noise = TerminalNode(Gaussian(m=1.0, V=0.1), id="noise")
        add = AdditionNode(id="add")

        Edge(add.out, inhibitor.in1)
        Edge(inhibitor.out, driver.in1)
        Edge(driver.out, add.in1)
        Edge(noise.out, add.in2)

    print("Scheduling without a breaker message...")
    try:
        SumProduct(g, goals=[driver.out]).execute()
    except CycleError as e:
        print(f"  {e}")

    print("\nRunning loopy sum-product with a breaker on the driver output...")
    for n_iterations in (1, 5, 20, 50):
        algo = SumProduct(g, breaker_messages={driver.out: Gaussian(m=0.0, V=1.0)}, n_iterations=n_iterations)
        result = algo.execute()
        print(f"  {n_iterations:3d} iterations: mean = {result.mean():.6f}, var = {result.var():.6f}")

    print(f"\nFixed point: mean = 1.000000, var = {1.0 / 30.0:.6f}")
    print(f"Match: {np.isclose(result.mean(), 1.0) and np.isclose(result.var(), 1.0 / 30.0)}")


if __name__ == "__main__":
    main()
