"""
Minimal dense linear algebra for the OLS solver.

Only what the normal equations need: transpose, multiply and a Gauss-Jordan
inverse. Pure Python on lists of floats, no external dependency.

The inverse does NOT swap rows. A pivot whose magnitude falls below
PIVOT_FLOOR is replaced by PIVOT_FLOOR before dividing, so a singular or
near-singular matrix yields a usable-but-inaccurate inverse instead of an
exception. Callers keep the design matrix free of pathological collinearity.
"""

from typing import List, Sequence

from fairvalue.exceptions import DimensionMismatchError

PIVOT_FLOOR = 1e-10


class Matrix:
    """Dense row-major matrix.

    Attributes:
        data: Rows of floats
        rows: Number of rows
        cols: Number of columns (0 for an empty matrix)
    """

    def __init__(self, data: Sequence[Sequence[float]]):
        self.data: List[List[float]] = [[float(v) for v in row] for row in data]
        self.rows = len(self.data)
        self.cols = len(self.data[0]) if self.data else 0

        for i, row in enumerate(self.data):
            if len(row) != self.cols:
                raise DimensionMismatchError(
                    f"Ragged matrix: row {i} has {len(row)} columns, expected {self.cols}",
                    details={"row": i, "length": len(row), "expected": self.cols},
                )

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        return cls([[1.0 if i == j else 0.0 for j in range(n)] for i in range(n)])

    @classmethod
    def column(cls, values: Sequence[float]) -> "Matrix":
        """Build an n x 1 column vector."""
        return cls([[v] for v in values])

    @property
    def shape(self) -> tuple:
        return (self.rows, self.cols)

    def to_list(self) -> List[List[float]]:
        return [list(row) for row in self.data]

    def transpose(self) -> "Matrix":
        return Matrix([[self.data[i][j] for i in range(self.rows)] for j in range(self.cols)])

    def multiply(self, other: "Matrix") -> "Matrix":
        """Return self * other.

        Raises:
            DimensionMismatchError: If self.cols != other.rows
        """
        if self.cols != other.rows:
            raise DimensionMismatchError(
                f"Cannot multiply {self.rows}x{self.cols} by {other.rows}x{other.cols}",
                details={"left": self.shape, "right": other.shape},
            )

        other_cols = list(zip(*other.data)) if other.data else []
        return Matrix(
            [[sum(a * b for a, b in zip(row, col)) for col in other_cols] for row in self.data]
        )

    def __matmul__(self, other: "Matrix") -> "Matrix":
        return self.multiply(other)

    def inverse(self) -> "Matrix":
        """Gauss-Jordan inverse on the augmented matrix [A | I].

        Raises:
            DimensionMismatchError: If the matrix is not square
        """
        if self.rows != self.cols:
            raise DimensionMismatchError(
                f"Cannot invert non-square {self.rows}x{self.cols} matrix",
                details={"shape": self.shape},
            )

        n = self.rows
        aug = [
            list(row) + [1.0 if i == j else 0.0 for j in range(n)]
            for i, row in enumerate(self.data)
        ]

        for i in range(n):
            pivot = aug[i][i]
            if abs(pivot) < PIVOT_FLOOR:
                pivot = PIVOT_FLOOR

            pivot_row = [v / pivot for v in aug[i]]
            aug[i] = pivot_row

            for k in range(n):
                if k == i:
                    continue
                factor = aug[k][i]
                if factor == 0.0:
                    continue
                aug[k] = [a - factor * b for a, b in zip(aug[k], pivot_row)]

        return Matrix([row[n:] for row in aug])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.data == other.data

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.cols})"


def transpose(matrix: Matrix) -> Matrix:
    return matrix.transpose()


def multiply(left: Matrix, right: Matrix) -> Matrix:
    return left.multiply(right)


def inverse(matrix: Matrix) -> Matrix:
    return matrix.inverse()
