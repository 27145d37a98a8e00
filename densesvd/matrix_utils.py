"""
Utilità per la gestione delle matrici dense usate dalla SVD.

Funzioni per:
- Allocare matrici e vettori con controllo delle dimensioni
- Costruire una matrice da una lista di valori (ordine per righe)
- Verificare che i dati siano finiti
- Formattare le matrici per la console
"""

from collections.abc import Iterable

import numpy as np

from densesvd.svd import SVD_EPS, InvalidDimensionError, _zeros


def alloc_matrix(n_cols: int, n_rows: int) -> np.ndarray:
    """
    Alloca una matrice n_rows×n_cols di zeri (float64).

    Parametri
    ---------
    n_cols : int
        Numero di colonne.
    n_rows : int
        Numero di righe.

    Ritorna
    -------
    matrix : np.ndarray
        Matrice di zeri, accessibile come [riga, colonna].

    Solleva
    -------
    InvalidDimensionError
        Se una delle dimensioni non è positiva.
    AllocationError
        Se la memoria non è disponibile o la forma è troppo grande per numpy.
    """
    if n_cols <= 0 or n_rows <= 0:
        raise InvalidDimensionError(n_cols, n_rows)
    return _zeros((n_rows, n_cols))


def alloc_vector(n: int) -> np.ndarray:
    """Alloca un vettore di n zeri (float64)."""
    if n <= 0:
        raise InvalidDimensionError(n, 1)
    return _zeros((n,))


def check_finite(A: np.ndarray) -> None:
    """Solleva ValueError indicando la prima posizione non finita di A."""
    bad = np.argwhere(~np.isfinite(A))
    if len(bad) > 0:
        pos = tuple(int(p) for p in bad[0])
        raise ValueError(f"valore non finito in posizione {pos}: {A[pos]}")


def matrix_from_values(n_cols: int, n_rows: int, values: Iterable[float]) -> np.ndarray:
    """
    Costruisce una matrice n_rows×n_cols riempiendola per righe.

    Parametri
    ---------
    n_cols : int
        Numero di colonne.
    n_rows : int
        Numero di righe.
    values : Iterable[float]
        Esattamente n_cols·n_rows valori: a_11, a_12, ..., a_mn.

    Ritorna
    -------
    matrix : np.ndarray
        La matrice (float64).
    """
    A = alloc_matrix(n_cols, n_rows)
    flat = np.asarray(list(values), dtype=np.float64)
    if flat.size != n_cols * n_rows:
        raise ValueError(
            f"attesi {n_cols * n_rows} valori per una matrice {n_rows}×{n_cols}, ricevuti {flat.size}"
        )
    A[:, :] = flat.reshape(n_rows, n_cols)
    check_finite(A)
    return A


def diag_matrix(w: np.ndarray, n_rows: int, n_cols: int) -> np.ndarray:
    """Matrice n_rows×n_cols con w sulla diagonale (per la stampa di W)."""
    W = alloc_matrix(n_cols, n_rows)
    k = min(len(w), n_rows, n_cols)
    W[np.arange(k), np.arange(k)] = w[:k]
    return W


def format_matrix(A: np.ndarray, offset: str = "  ") -> str:
    """
    Formatta una matrice per la console, una riga per linea.

    I valori con modulo inferiore a SVD_EPS vengono stampati come 0.
    """
    lines = []
    for row in A:
        cells = "".join(f"{(0.0 if abs(x) < SVD_EPS else x):10.5g} " for x in row)
        lines.append(f"{offset}{cells}")
    return "\n".join(lines)
