"""
Main entry point — SVD densa (EISPACK) da riga di comando.

Questo script:
1. Legge le dimensioni e i valori della matrice A (per righe)
2. Calcola la SVD  A = U · W · Vᵀ
3. Ordina il risultato per valori singolari decrescenti
4. Calcola la pseudo-inversa di Moore-Penrose Aᵀ

Uso:
    python main.py <ncolonne> <nrighe> <a_11> <a_12> ... <a_mn>
    python main.py 4 3 1 0 0 1 -1 0 2 1 1 2 0 1
    python main.py 3 4 1 0 0 1 -1 0 2 1 1 2 0 1 -vv
    python main.py --validate                     # Suite di validazione vs numpy
"""

import argparse
import sys

import numpy as np

from densesvd.matrix_utils import alloc_matrix, alloc_vector, diag_matrix, format_matrix, matrix_from_values
from densesvd.svd import SVDError, Verbosity, decompose, pseudo_inverse, svd_sort
from densesvd.validation import run_all_tests

USAGE = """Usage: svd <ncolumns> <nrows> <a_11> <a_12> ... <a_mn>
E.g.:
  python main.py 4 3 1 0 0 1 -1 0 2 1 1 2 0 1
  python main.py 3 4 1 0 0 1 -1 0 2 1 1 2 0 1"""


def run_svd(n: int, m: int, values: list[float], verbosity: Verbosity = Verbosity.SILENT) -> np.ndarray:
    """
    Esegue la pipeline completa e stampa ogni passaggio.

    Parametri
    ---------
    n : int
        Numero di colonne.
    m : int
        Numero di righe.
    values : list[float]
        I valori di A per righe (n·m elementi).
    verbosity : Verbosity
        Livello dei messaggi di avanzamento su stderr.

    Ritorna
    -------
    AT : np.ndarray
        La pseudo-inversa (n×m).
    """
    A = matrix_from_values(n, m, values)

    print("A = ")
    print(format_matrix(A))

    w = alloc_vector(n)
    V = alloc_matrix(n, n)

    print("performing SVD:", end="", flush=True)
    decompose(A, w, V, verbosity=verbosity)
    print(" done")

    _print_triad(A, w, V)

    print("performing sorting:", end="", flush=True)
    svd_sort(A, w, V, verbosity=verbosity)
    print(" done")

    _print_triad(A, w, V)

    AT = pseudo_inverse(A, w, V)

    print("A.T =")
    print(format_matrix(AT))
    return AT


def _print_triad(U: np.ndarray, w: np.ndarray, V: np.ndarray) -> None:
    n = len(w)
    print("U =")
    print(format_matrix(U))
    print("W = ")
    print(format_matrix(diag_matrix(w, n, n)))
    print("V =")
    print(format_matrix(V))


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _split_argv(argv: list[str]) -> tuple[list[str], list[str]]:
    """
    Separa le opzioni dagli argomenti posizionali.

    argparse riconosce come numeri negativi solo le forme -N e -N.M: un valore
    come -1e-3 verrebbe letto come opzione sconosciuta. Ogni token che float()
    accetta è quindi un valore, indipendentemente dal segno.
    """
    options, positionals = [], []
    for token in argv:
        if token.startswith("-") and not _is_number(token):
            options.append(token)
        else:
            positionals.append(token)
    return options, positionals


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="SVD densa — decomposizione, ordinamento e pseudo-inversa",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE,
    )
    parser.add_argument("n", type=int, nargs="?", help="Numero di colonne")
    parser.add_argument("m", type=int, nargs="?", help="Numero di righe")
    parser.add_argument("values", type=float, nargs="*", help="Valori di A per righe: a_11 a_12 ... a_mn")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Avanzamento su stderr: -v fasi, -vv un punto per iterazione",
    )
    parser.add_argument("--validate", action="store_true", help="Esegue la suite di validazione vs numpy")

    options, positionals = _split_argv(sys.argv[1:] if argv is None else list(argv))
    if positionals:
        options += ["--"] + positionals
    args = parser.parse_args(options)

    if args.validate:
        return 0 if run_all_tests() else 1

    if args.n is None or args.m is None or not args.values:
        print(USAGE)
        return 0

    if args.n <= 0:
        print(f"error: svd: n = {args.n}; expected n > 0", file=sys.stderr)
        return 1
    if args.m <= 0:
        print(f"error: svd: m = {args.m}; expected m > 0", file=sys.stderr)
        return 1

    if len(args.values) != args.n * args.m:
        print(USAGE)
        return 0

    verbosity = Verbosity(min(args.verbose, Verbosity.DETAILED))
    try:
        run_svd(args.n, args.m, args.values, verbosity)
    except (SVDError, ValueError) as exc:
        sys.stdout.flush()
        print(f"\nerror: svd: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
