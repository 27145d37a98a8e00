"""
SVD densa "from scratch" — decomposizione, ordinamento e pseudo-inversa.

Porting dell'algoritmo EISPACK (1972-1973) di Golub–Kahan–Reinsch:
    1. Riduzione di Householder a forma bidiagonale
    2. Accumulo delle trasformazioni destre (V) e sinistre (U)
    3. Diagonalizzazione della forma bidiagonale con iterazioni QR a shift implicito

La matrice di input viene rappresentata come  A = U · diag(w) · Vᵀ.
Tutte le funzioni del nucleo lavorano "in place" sugli array passati dal
chiamante e non conservano stato tra una chiamata e l'altra.
"""

import enum
import math
import sys
from typing import TextIO

import numpy as np

# Soglia relativa: criterio di splitting e azzeramento dei valori singolari trascurabili
SVD_EPS = 4.0e-15

# Numero massimo di sweep QR per ogni valore singolare
SVD_NMAX = 40


# ─────────────────────────────────────────────────────────────
#  Errori
# ─────────────────────────────────────────────────────────────

class SVDError(Exception):
    """Errore base della libreria."""


class InvalidDimensionError(SVDError, ValueError):
    """Dimensioni non positive per una matrice o un vettore."""

    def __init__(self, n_cols: int, n_rows: int):
        self.n_cols = n_cols
        self.n_rows = n_rows
        super().__init__(f"dimensioni non valide (n = {n_cols}, m = {n_rows}); attese n > 0 e m > 0")


class AllocationError(SVDError, MemoryError):
    """Impossibile ottenere la memoria per una matrice di lavoro."""

    def __init__(self, shape: tuple[int, ...], reason: str = ""):
        self.shape = shape
        detail = f": {reason}" if reason else ""
        super().__init__(f"allocazione fallita per forma {shape}{detail}")


class NonConvergenceError(SVDError, ArithmeticError):
    """L'iterazione QR per un valore singolare ha superato il limite di sweep."""

    def __init__(self, index: int, iterations: int):
        self.index = index
        self.iterations = iterations
        super().__init__(f"nessuna convergenza in {iterations} iterazioni (valore singolare {index})")


# ─────────────────────────────────────────────────────────────
#  Diagnostica
# ─────────────────────────────────────────────────────────────

class Verbosity(enum.IntEnum):
    """Livelli di output diagnostico: silenzioso, fasi, un punto per iterazione."""
    SILENT = 0
    PHASES = 1
    DETAILED = 2


def _report(verbosity: Verbosity, level: Verbosity, text: str, stream: TextIO | None) -> None:
    if verbosity < level:
        return
    out = stream if stream is not None else sys.stderr
    print(text, end="", file=out, flush=True)


# ─────────────────────────────────────────────────────────────
#  Allocazione
# ─────────────────────────────────────────────────────────────

def _zeros(shape: tuple[int, ...]) -> np.ndarray:
    """
    Array float64 di zeri; ogni fallimento di allocazione diventa AllocationError.

    numpy segnala le forme troppo grandi con ValueError ("array is too big")
    prima ancora di tentare l'allocazione: anche quel caso viene convertito.
    """
    try:
        return np.zeros(shape, dtype=np.float64)
    except MemoryError as exc:
        raise AllocationError(tuple(shape), str(exc)) from exc
    except ValueError as exc:
        if any(d < 0 for d in shape):
            raise
        raise AllocationError(tuple(shape), str(exc)) from exc


def _scratch_copy(arr: np.ndarray) -> np.ndarray:
    out = _zeros(arr.shape)
    out[...] = arr
    return out


# ─────────────────────────────────────────────────────────────
#  Controlli sugli argomenti
# ─────────────────────────────────────────────────────────────

def _check_triad(A: np.ndarray, w: np.ndarray, V: np.ndarray) -> tuple[int, int]:
    """Verifica forme e tipo del tripletto (A, w, V); ritorna (m, n)."""
    if A.ndim != 2:
        raise ValueError(f"A deve essere una matrice 2D, ricevuto {A.ndim}D")
    m, n = A.shape
    if m <= 0 or n <= 0:
        raise InvalidDimensionError(n, m)
    for name, arr, shape in (("A", A, (m, n)), ("w", w, (n,)), ("V", V, (n, n))):
        if arr.shape != shape:
            raise ValueError(f"{name} ha forma {arr.shape}, attesa {shape}")
        if arr.dtype != np.float64:
            raise ValueError(f"{name} deve essere float64, ricevuto {arr.dtype}")
    return m, n


# ─────────────────────────────────────────────────────────────
#  Decomposizione
# ─────────────────────────────────────────────────────────────

def decompose(
    A: np.ndarray,
    w: np.ndarray,
    V: np.ndarray,
    *,
    verbosity: Verbosity = Verbosity.SILENT,
    stream: TextIO | None = None,
    max_iter: int = SVD_NMAX,
) -> None:
    """
    Calcola la SVD di una matrice densa: A = U · diag(w) · Vᵀ.

    Parametri
    ---------
    A : np.ndarray
        Matrice di input (m×n, float64). In uscita contiene U (m×n).
    w : np.ndarray
        Vettore di output (n) con i valori singolari, non ordinati.
    V : np.ndarray
        Matrice di output (n×n) con i vettori singolari destri (non trasposta).
    verbosity : Verbosity
        Livello di output diagnostico su `stream`.
    stream : TextIO | None
        Canale diagnostico (default: sys.stderr).
    max_iter : int
        Numero massimo di sweep QR per ogni valore singolare.

    Solleva
    -------
    InvalidDimensionError
        Se m o n non sono positivi.
    ValueError
        Se le forme di w e V non sono coerenti o A contiene valori non finiti.
    NonConvergenceError
        Se un valore singolare non converge entro `max_iter` sweep.
    """
    m, n = _check_triad(A, w, V)
    if not np.all(np.isfinite(A)):
        raise ValueError("A contiene valori non finiti")

    rv1 = _zeros((n,))

    # ─── Riduzione di Householder a forma bidiagonale ───
    _report(verbosity, Verbosity.PHASES, "  svd: householder reduction:", stream)
    g = 0.0
    scale = 0.0
    tst1 = 0.0
    l = 0
    for i in range(n):
        _report(verbosity, Verbosity.DETAILED, ".", stream)

        l = i + 1
        rv1[i] = scale * g
        g = 0.0
        s = 0.0
        scale = 0.0
        if i < m:
            scale = float(np.sum(np.abs(A[i:, i])))
            if scale != 0.0:
                A[i:, i] /= scale
                s = float(A[i:, i] @ A[i:, i])
                f = float(A[i, i])
                g = -math.copysign(math.sqrt(s), f)
                h = f * g - s
                A[i, i] = f - g
                if i < n - 1:
                    proj = (A[i:, i] @ A[i:, l:]) / h
                    A[i:, l:] += np.outer(A[i:, i], proj)
                A[i:, i] *= scale
        w[i] = scale * g
        g = 0.0
        s = 0.0
        scale = 0.0
        if i < m and i < n - 1:
            scale = float(np.sum(np.abs(A[i, l:])))
            if scale != 0.0:
                A[i, l:] /= scale
                s = float(A[i, l:] @ A[i, l:])
                f = float(A[i, l])
                g = -math.copysign(math.sqrt(s), f)
                h = f * g - s
                A[i, l] = f - g
                rv1[l:] = A[i, l:] / h
                if l < m:
                    proj = A[l:, l:] @ A[i, l:]
                    A[l:, l:] += np.outer(proj, rv1[l:])
                A[i, l:] *= scale
        tst1 = max(tst1, abs(float(w[i])) + abs(float(rv1[i])))

    # ─── Accumulo delle trasformazioni destre ───
    _report(verbosity, Verbosity.PHASES, "\n  svd: accumulating right-hand transformations:", stream)
    for i in range(n - 1, -1, -1):
        _report(verbosity, Verbosity.DETAILED, ".", stream)

        if i < n - 1:
            if g != 0.0:
                # doppia divisione: evita un possibile underflow
                V[l:, i] = (A[i, l:] / A[i, l]) / g
                proj = A[i, l:] @ V[l:, l:]
                V[l:, l:] += np.outer(V[l:, i], proj)
            V[i, l:] = 0.0
            V[l:, i] = 0.0
        V[i, i] = 1.0
        g = float(rv1[i])
        l = i

    # ─── Accumulo delle trasformazioni sinistre ───
    _report(verbosity, Verbosity.PHASES, "\n  svd: accumulating left-hand transformations:", stream)
    for i in range(min(m, n) - 1, -1, -1):
        _report(verbosity, Verbosity.DETAILED, ".", stream)

        l = i + 1
        g = float(w[i])
        if i != n - 1:
            A[i, l:] = 0.0
        if g != 0.0:
            if l < n:
                proj = A[l:, i] @ A[l:, l:]
                # doppia divisione: evita un possibile underflow
                f_row = (proj / A[i, i]) / g
                A[i:, l:] += np.outer(A[i:, i], f_row)
            A[i:, i] /= g
        else:
            A[i:, i] = 0.0
        A[i, i] += 1.0

    # ─── Diagonalizzazione della forma bidiagonale ───
    _report(verbosity, Verbosity.PHASES, "\n  svd: diagonalization of the bidiagonal form:", stream)
    for k in range(n - 1, -1, -1):
        _report(verbosity, Verbosity.DETAILED, ".", stream)
        _diagonalize_value(A, w, V, rv1, k, tst1, max_iter)

    _report(verbosity, Verbosity.PHASES, "\n", stream)


def _diagonalize_value(
    A: np.ndarray,
    w: np.ndarray,
    V: np.ndarray,
    rv1: np.ndarray,
    k: int,
    tst1: float,
    max_iter: int,
) -> None:
    """Iterazioni QR a shift implicito fino alla convergenza di w[k]."""
    k1 = k - 1
    its = 0
    while True:
        its += 1
        if its > max_iter:
            raise NonConvergenceError(k, max_iter)

        # Test di splitting: rv1[0] è sempre zero, il ciclo esce sempre con un break
        cancellation = True
        l1 = -1
        l = k
        for l in range(k, -1, -1):
            if abs(rv1[l]) + tst1 == tst1:
                cancellation = False
                break
            l1 = l - 1
            if abs(w[l1]) + tst1 == tst1:
                break

        # Cancellazione di rv1[l] se l > 0
        if cancellation:
            c = 0.0
            s = 1.0
            for i in range(l, k + 1):
                f = s * rv1[i]
                rv1[i] = c * rv1[i]
                if abs(f) + tst1 == tst1:
                    break
                g = float(w[i])
                h = math.hypot(f, g)
                w[i] = h
                c = g / h
                s = -f / h
                _rotate_columns(A, l1, i, c, s)

        # Test di convergenza
        z = float(w[k])
        if l == k:
            # w[k] reso non negativo
            if z < 0.0:
                w[k] = -z
                V[:, k] = -V[:, k]
            return

        # Shift dal minore 2×2 in basso
        x = float(w[l])
        y = float(w[k1])
        g = float(rv1[k1])
        h = float(rv1[k])
        f = 0.5 * (((g + z) / h) * ((g - z) / y) + y / h - h / y)
        g = math.hypot(f, 1.0)
        f = x - (z / x) * z + (h / x) * (y / (f + math.copysign(g, f)) - h)

        # Prossima trasformazione QR
        c = 1.0
        s = 1.0
        for i1 in range(l, k):
            i = i1 + 1
            g = float(rv1[i])
            y = float(w[i])
            h = s * g
            g = c * g
            z = math.hypot(f, h)
            rv1[i1] = z
            c = f / z
            s = h / z
            f = x * c + g * s
            g = g * c - x * s
            h = y * s
            y *= c
            _rotate_columns(V, i1, i, c, s)
            z = math.hypot(f, h)
            w[i1] = z
            # la rotazione può essere arbitraria se z = 0
            if z != 0.0:
                c = f / z
                s = h / z
            f = c * g + s * y
            x = c * y - s * g
            _rotate_columns(A, i1, i, c, s)
        rv1[l] = 0.0
        rv1[k] = f
        w[k] = x


def _rotate_columns(M: np.ndarray, p: int, q: int, c: float, s: float) -> None:
    """Rotazione di Givens sulle colonne p e q di M."""
    col_p = M[:, p].copy()
    col_q = M[:, q].copy()
    M[:, p] = col_p * c + col_q * s
    M[:, q] = col_q * c - col_p * s


# ─────────────────────────────────────────────────────────────
#  Ordinamento
# ─────────────────────────────────────────────────────────────

def svd_sort(
    A: np.ndarray,
    w: np.ndarray,
    V: np.ndarray,
    *,
    verbosity: Verbosity = Verbosity.SILENT,
    stream: TextIO | None = None,
) -> None:
    """
    Ordina il risultato della SVD per valori singolari decrescenti.

    Le colonne di U (A), gli elementi di w e le colonne di V vengono permutati
    insieme. I valori singolari con rapporto rispetto al massimo inferiore a
    SVD_EPS vengono azzerati (ma non rimossi).

    Richiede una copia temporanea di A, w e V: per problemi densi molto grandi
    la memoria raddoppia, ma in quei casi non si usa una SVD densa.
    """
    _check_triad(A, w, V)
    _report(verbosity, Verbosity.PHASES, "  svd: sorting:", stream)

    w_old = _scratch_copy(w)
    A_old = _scratch_copy(A)
    V_old = _scratch_copy(V)

    # Ordinamento stabile: a parità di valore resta l'ordine originale
    pos = np.argsort(-w_old, kind="stable")

    w[:] = w_old[pos]
    A[:, :] = A_old[:, pos]
    V[:, :] = V_old[:, pos]

    wmax = float(w[0])
    if wmax != 0.0:
        w[w / wmax < SVD_EPS] = 0.0

    _report(verbosity, Verbosity.PHASES, "\n", stream)


# ─────────────────────────────────────────────────────────────
#  Pseudo-inversa
# ─────────────────────────────────────────────────────────────

def pseudo_inverse(
    A: np.ndarray,
    w: np.ndarray,
    V: np.ndarray,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """
    Costruisce la pseudo-inversa di Moore-Penrose: Aᵀ = V · diag(w⁺) · Uᵀ.

    Si usano solo i primi min(m, n) modi; w⁺ᵢ = 1/wᵢ, oppure 0 se wᵢ è
    esattamente zero (azzerato da svd_sort). Valori quasi nulli non azzerati
    restano responsabilità del chiamante.

    Parametri
    ---------
    A : np.ndarray
        Matrice U (m×n) prodotta da decompose (meglio se ordinata).
    w : np.ndarray
        Valori singolari (n).
    V : np.ndarray
        Vettori singolari destri (n×n).
    out : np.ndarray | None
        Matrice di output (n×m) da riempire; se None viene allocata.

    Ritorna
    -------
    AT : np.ndarray
        La pseudo-inversa (n×m). A, w e V non vengono modificati.
    """
    m, n = _check_triad(A, w, V)
    if out is None:
        out = _zeros((n, m))
    elif out.shape != (n, m):
        raise ValueError(f"out ha forma {out.shape}, attesa {(n, m)}")

    mnmin = min(n, m)
    w_inv = _zeros((mnmin,))
    nonzero = w[:mnmin] != 0.0
    w_inv[nonzero] = 1.0 / w[:mnmin][nonzero]

    v_scaled = V[:, :mnmin] * w_inv
    out[:, :] = v_scaled @ A[:, :mnmin].T
    return out


# ─────────────────────────────────────────────────────────────
#  Funzioni di comodo
# ─────────────────────────────────────────────────────────────

def svd(
    X: np.ndarray,
    sort: bool = True,
    verbosity: Verbosity = Verbosity.SILENT,
    stream: TextIO | None = None,
    max_iter: int = SVD_NMAX,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    SVD di una copia di X. Ritorna (U, w, V) con X ≈ U · diag(w) · Vᵀ.

    Con sort=True il risultato è ordinato e i valori trascurabili azzerati.
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"X deve essere una matrice 2D, ricevuto {X.ndim}D")
    n = X.shape[1]
    U = _scratch_copy(X)
    w = _zeros((n,))
    V = _zeros((n, n))

    decompose(U, w, V, verbosity=verbosity, stream=stream, max_iter=max_iter)
    if sort:
        svd_sort(U, w, V, verbosity=verbosity, stream=stream)
    return U, w, V


def pinv(
    X: np.ndarray,
    verbosity: Verbosity = Verbosity.SILENT,
    stream: TextIO | None = None,
    max_iter: int = SVD_NMAX,
) -> np.ndarray:
    """Pseudo-inversa di X (n×m) tramite svd ordinata."""
    U, w, V = svd(X, sort=True, verbosity=verbosity, stream=stream, max_iter=max_iter)
    return pseudo_inverse(U, w, V)


def reconstruct(
    U: np.ndarray, w: np.ndarray, V: np.ndarray, k: int | None = None
) -> np.ndarray:
    """Ricostruisce U · diag(w) · Vᵀ usando i primi k modi (tutti se k è None)."""
    if k is None:
        k = len(w)
    k = min(k, len(w))

    return (U[:, :k] * w[:k]) @ V[:, :k].T


def effective_rank(w: np.ndarray) -> int:
    """Numero di valori singolari strettamente positivi."""
    return int(np.count_nonzero(w > 0.0))
