"""
Minimi quadrati tramite SVD.

Risolve min ‖(A·x - y) / σ‖₂, dove σ è la deviazione standard (opzionale)
di ciascuna misura. Ogni riga del sistema viene pesata con 1/σᵢ, poi si
applica la pseudo-inversa della matrice pesata:  x = A_w⁺ · y_w.
"""

from typing import TextIO

import numpy as np

from densesvd.matrix_utils import alloc_matrix, alloc_vector, check_finite
from densesvd.svd import SVD_NMAX, Verbosity, decompose, pseudo_inverse, svd_sort


def svd_lsq(
    A: np.ndarray,
    y: np.ndarray,
    std: np.ndarray | None = None,
    verbosity: Verbosity = Verbosity.SILENT,
    stream: TextIO | None = None,
    max_iter: int = SVD_NMAX,
) -> np.ndarray:
    """
    Fitting ai minimi quadrati tramite SVD.

    Parametri
    ---------
    A : np.ndarray
        Matrice del modello (m×n): una riga per misura, una colonna per parametro.
    y : np.ndarray
        Vettore delle misure (m).
    std : np.ndarray | None
        Deviazioni standard delle misure (m), tutte positive. Se None,
        tutte le misure hanno lo stesso peso.

    Ritorna
    -------
    x : np.ndarray
        Parametri stimati (n). A e y non vengono modificati.
    """
    A = np.asarray(A, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if A.ndim != 2:
        raise ValueError(f"A deve essere una matrice 2D, ricevuto {A.ndim}D")
    m, n = A.shape
    if y.shape != (m,):
        raise ValueError(f"y ha forma {y.shape}, attesa {(m,)}")
    check_finite(y)

    U = alloc_matrix(n, m)
    U[:, :] = A
    b = alloc_vector(m)
    b[:] = y
    if std is not None:
        std = np.asarray(std, dtype=np.float64)
        if std.shape != (m,):
            raise ValueError(f"std ha forma {std.shape}, attesa {(m,)}")
        if not np.all(std > 0.0):
            raise ValueError("le deviazioni standard devono essere tutte positive")
        # Pesatura delle righe con 1/σ
        U /= std[:, np.newaxis]
        b /= std

    w = alloc_vector(n)
    V = alloc_matrix(n, n)
    decompose(U, w, V, verbosity=verbosity, stream=stream, max_iter=max_iter)
    svd_sort(U, w, V, verbosity=verbosity, stream=stream)

    return pseudo_inverse(U, w, V) @ b


def lsq_residuals(A: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Residui y - A·x del fitting."""
    return np.asarray(y, dtype=np.float64) - np.asarray(A, dtype=np.float64) @ x
