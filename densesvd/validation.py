"""
Script di validazione per la SVD EISPACK.

Confronta i risultati dell'implementazione "from scratch" con
`numpy.linalg.svd` e `numpy.linalg.pinv` usando diverse matrici di test
per verificarne la correttezza numerica.
"""

import numpy as np

from densesvd.svd import svd, pseudo_inverse, reconstruct

TOL = 1e-6


def compare_singular_values(sigma_custom: np.ndarray, sigma_numpy: np.ndarray, label: str = "") -> dict:
    """
    Confronta i valori singolari tra la SVD custom e numpy.

    L'errore relativo viene calcolato solo sui valori singolari significativi
    (sopra una soglia numerica), per evitare confronti fuorvianti tra
    valori quasi-zero in matrici di rango basso.

    Ritorna un dizionario con le metriche di confronto.
    """
    # numpy ritorna min(m, n) valori, la SVD custom ne ritorna n
    k = min(len(sigma_custom), len(sigma_numpy))
    s_custom = sigma_custom[:k]
    s_numpy = sigma_numpy[:k]

    abs_error = np.abs(s_custom - s_numpy)

    # Soglia: eps_macchina * max(sigma) * 100
    sv_threshold = np.finfo(np.float64).eps * max(s_numpy[0] if len(s_numpy) > 0 else 1.0, 1.0) * 100
    significant_mask = s_numpy > sv_threshold

    if np.any(significant_mask):
        rel_error_significant = abs_error[significant_mask] / s_numpy[significant_mask]
        max_rel = float(np.max(rel_error_significant))
        mean_rel = float(np.mean(rel_error_significant))
    else:
        max_rel = 0.0
        mean_rel = 0.0

    n_significant = int(np.sum(significant_mask))

    return {
        "label": label,
        "max_abs_error": float(np.max(abs_error)),
        "mean_abs_error": float(np.mean(abs_error)),
        "max_rel_error": max_rel,
        "mean_rel_error": mean_rel,
        "n_significant": n_significant,
        "n_negligible": k - n_significant,
        "sigma_custom": s_custom,
        "sigma_numpy": s_numpy,
    }


def validate_svd_decomposition(X: np.ndarray, U: np.ndarray, w: np.ndarray, V: np.ndarray, label: str = "") -> dict:
    """
    Valida la correttezza della decomposizione verificando:
    1. Ricostruzione: ||X - U·diag(w)·Vᵀ|| ≈ 0
    2. Ortonormalità di U sui modi con valore singolare non nullo: UᵀU ≈ I
    3. Ortonormalità di V: VᵀV ≈ I
    """
    X_reconstructed = reconstruct(U, w, V)
    reconstruction_error = np.linalg.norm(X - X_reconstructed, 'fro') / max(np.linalg.norm(X, 'fro'), 1e-15)

    # Con m < n (o rango basso) le colonne di U dei modi nulli non sono significative
    mnmin = min(U.shape)
    active = np.flatnonzero(w[:mnmin] > 0.0)
    U_k = U[:, active]
    ortho_U_error = np.linalg.norm(U_k.T @ U_k - np.eye(U_k.shape[1]), 'fro')

    n = V.shape[1]
    ortho_V_error = np.linalg.norm(V.T @ V - np.eye(n), 'fro')

    return {
        "label": label,
        "reconstruction_rel_error": float(reconstruction_error),
        "orthonormality_U_error": float(ortho_U_error),
        "orthonormality_V_error": float(ortho_V_error),
    }


def validate_pseudo_inverse(X: np.ndarray, X_pinv: np.ndarray, label: str = "") -> dict:
    """
    Confronta la pseudo-inversa con numpy e verifica le prime due
    condizioni di Penrose: X·X⁺·X ≈ X e X⁺·X·X⁺ ≈ X⁺.
    """
    X_pinv_numpy = np.linalg.pinv(X)
    scale = max(np.linalg.norm(X_pinv_numpy, 'fro'), 1e-15)

    diff_numpy = np.linalg.norm(X_pinv - X_pinv_numpy, 'fro') / scale
    penrose_1 = np.linalg.norm(X @ X_pinv @ X - X, 'fro') / max(np.linalg.norm(X, 'fro'), 1e-15)
    penrose_2 = np.linalg.norm(X_pinv @ X @ X_pinv - X_pinv, 'fro') / scale

    return {
        "label": label,
        "pinv_rel_error": float(diff_numpy),
        "penrose_1_error": float(penrose_1),
        "penrose_2_error": float(penrose_2),
    }


def print_validation_report(sv_comparison: dict, decomposition_validation: dict, pinv_validation: dict | None = None) -> None:
    """Stampa un report leggibile dei risultati della validazione."""
    label = sv_comparison.get("label", "Test")

    print(f"\n{'=' * 60}")
    print(f"  VALIDAZIONE SVD: {label}")
    print(f"{'=' * 60}")

    print(f"\n  📊 Confronto Valori Singolari (custom vs numpy):")
    print(f"     Max errore assoluto:  {sv_comparison['max_abs_error']:.2e}")
    print(f"     Mean errore assoluto: {sv_comparison['mean_abs_error']:.2e}")
    print(f"     Max errore relativo:  {sv_comparison['max_rel_error']:.2e}  (su {sv_comparison['n_significant']} SV significativi)")
    print(f"     Mean errore relativo: {sv_comparison['mean_rel_error']:.2e}")
    if sv_comparison['n_negligible'] > 0:
        print(f"     ℹ️  {sv_comparison['n_negligible']} valori singolari trascurabili (≈0) esclusi dall'errore relativo")

    print(f"\n  🔄 Qualità della Decomposizione:")
    print(f"     Errore ricostruzione (relativo): {decomposition_validation['reconstruction_rel_error']:.2e}")
    print(f"     Errore ortonormalità U:          {decomposition_validation['orthonormality_U_error']:.2e}")
    print(f"     Errore ortonormalità V:          {decomposition_validation['orthonormality_V_error']:.2e}")

    if pinv_validation is not None:
        print(f"\n  🔁 Pseudo-inversa:")
        print(f"     Errore vs numpy.linalg.pinv:     {pinv_validation['pinv_rel_error']:.2e}")
        print(f"     Errore X·X⁺·X = X:               {pinv_validation['penrose_1_error']:.2e}")
        print(f"     Errore X⁺·X·X⁺ = X⁺:             {pinv_validation['penrose_2_error']:.2e}")

    passed = _passed(sv_comparison, decomposition_validation, pinv_validation)
    if passed:
        print(f"\n  ✅ RISULTATO: SUPERATO — la SVD custom è corretta!")
    else:
        print(f"\n  ⚠️  RISULTATO: ATTENZIONE — possibili discrepanze")

    print(f"\n{'─' * 60}")


def _passed(sv_comparison: dict, decomposition_validation: dict, pinv_validation: dict | None) -> bool:
    sv_ok = sv_comparison['max_rel_error'] < TOL
    recon_ok = decomposition_validation['reconstruction_rel_error'] < TOL
    ortho_ok = max(decomposition_validation['orthonormality_U_error'],
                   decomposition_validation['orthonormality_V_error']) < TOL
    pinv_ok = pinv_validation is None or max(
        pinv_validation['pinv_rel_error'],
        pinv_validation['penrose_1_error'],
        pinv_validation['penrose_2_error'],
    ) < TOL
    return sv_ok and recon_ok and ortho_ok and pinv_ok


def run_test(X: np.ndarray, label: str, check_pinv: bool = True) -> bool:
    """
    Esegue un singolo test di validazione su una matrice.

    La pseudo-inversa va controllata solo se i valori singolari trascurabili
    vengono azzerati esattamente (rango pieno o colonne nulle).

    Ritorna True se il test passa, False altrimenti.
    """
    U, w, V = svd(X)
    sigma_numpy = np.linalg.svd(X, compute_uv=False)

    sv_comp = compare_singular_values(w, sigma_numpy, label)
    decomp_val = validate_svd_decomposition(X, U, w, V, label)
    pinv_val = validate_pseudo_inverse(X, pseudo_inverse(U, w, V), label) if check_pinv else None

    print_validation_report(sv_comp, decomp_val, pinv_val)
    return _passed(sv_comp, decomp_val, pinv_val)


def run_all_tests() -> bool:
    """Esegue tutti i test di validazione. Ritorna True se passano tutti."""

    print("\n" + "🧪" * 30)
    print("  SUITE DI VALIDAZIONE SVD — EISPACK vs numpy")
    print("🧪" * 30)

    results = []
    rng = np.random.default_rng(seed=0)

    # ─── Test 1: Matrice quadrata piccola ───
    X1 = rng.standard_normal((4, 4))
    results.append(run_test(X1, "Matrice 4×4 (quadrata, random)"))

    # ─── Test 2: Matrice rettangolare (più righe) ───
    X2 = rng.standard_normal((6, 3))
    results.append(run_test(X2, "Matrice 6×3 (rettangolare, m > n)"))

    # ─── Test 3: Matrice rettangolare (più colonne) ───
    X3 = rng.standard_normal((3, 6))
    results.append(run_test(X3, "Matrice 3×6 (rettangolare, m < n)"))

    # ─── Test 4: Matrice di rango basso ───
    A = rng.standard_normal((5, 2))
    B = rng.standard_normal((2, 5))
    X4 = A @ B  # rango ≤ 2
    results.append(run_test(X4, "Matrice 5×5 (rango basso ≤ 2)", check_pinv=False))

    # ─── Test 5: Matrice identità ───
    X5 = np.eye(5)
    results.append(run_test(X5, "Matrice 5×5 (identità)"))

    # ─── Test 6: Colonna nulla (rango deficiente, zero esatto) ───
    X6 = rng.standard_normal((5, 3))
    X6[:, 2] = 0.0
    results.append(run_test(X6, "Matrice 5×3 (colonna nulla)"))

    # ─── Test 7: Matrice più grande ───
    X7 = rng.standard_normal((16, 16))
    results.append(run_test(X7, "Matrice 16×16 (dimensione media)"))

    # ─── Riepilogo ───
    print(f"\n\n{'═' * 60}")
    print(f"  📋 RIEPILOGO FINALE")
    print(f"{'═' * 60}")
    passed = sum(results)
    total = len(results)
    print(f"\n  Test superati: {passed}/{total}")
    if passed == total:
        print(f"  🎉 Tutti i test superati! La SVD custom funziona correttamente.")
    else:
        print(f"  ⚠️  {total - passed} test falliti. Rivedere l'implementazione.")
    print()
    return passed == total


if __name__ == "__main__":
    run_all_tests()
