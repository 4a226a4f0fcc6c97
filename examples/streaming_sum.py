"""
Example: Running sum over a stream.

  prev --[+]--> out
          |       :
        delta     : wrap (out -> prev)

Each section reads one value into delta from a read buffer, logs the sum
to a write buffer and feeds it back into prev for the next section.
"""

import numpy as np
from forney import (
    AdditionNode,
    Delta,
    Edge,
    FactorGraph,
    SumProduct,
    TerminalNode,
    Wrap,
    attach_read_buffer,
    attach_write_buffer,
    configure_logging,
)


def main():
    configure_logging("INFO")

    with FactorGraph() as g:
        prev = TerminalNode(0.0, id="prev")
        delta = TerminalNode(id="delta")
        add = AdditionNode(id="add")
        out = TerminalNode(id="out")

        Edge(prev.out, add.in1)
        Edge(delta.out, add.in2)
        Edge(add.out, out.out)
        Wrap(out, prev)

    values = [Delta(float(k)) for k in range(1, 11)]
    attach_read_buffer(delta, values)
    sums = attach_write_buffer(add.out)

    print("Streaming 1..10 through the running sum...")
    SumProduct(g).run()

    result = [d.m for d in sums]
    print(f"Sums: {result}")
    print(f"Match: {np.allclose(result, np.cumsum(range(1, 11)))}")


if __name__ == "__main__":
    main()
