"""
Generazione grafici dai risultati del benchmark della SVD.

Legge i CSV prodotti da benchmark_svd.py e genera i grafici di analisi:
tempi di calcolo (EISPACK vs numpy), accuratezza (ricostruzione, valori
singolari, condizioni di Penrose) e rango numerico stimato.
"""

import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

# ============================================================================
# COSTANTE: percorso della cartella contenente i CSV del benchmark
# ============================================================================
CSV_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "test_output", "benchmark",
)

# Directory di output per i grafici
PLOT_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "test_output", "plots",
)

# ============================================================================
# Stile globale
# ============================================================================
plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 11,
    "axes.titlesize": 13,
    "axes.labelsize": 11,
    "legend.fontsize": 9,
    "figure.dpi": 150,
})

PALETTE = ["#2196F3", "#FF5722", "#4CAF50", "#9C27B0", "#FF9800", "#00BCD4"]

KINDS = ["random", "lowrank", "graded"]

ERROR_COLUMNS = {
    "recon_rel_error": "Ricostruzione ‖X − UWVᵀ‖/‖X‖",
    "sv_rel_error": "Valori singolari vs numpy",
    "ortho_V_error": "Ortonormalità V",
    "penrose_error": "Penrose ‖XX⁺X − X‖/‖X‖",
}


def _safe_float(series: pd.Series) -> pd.Series:
    """Converte una colonna in float, gestendo 'inf' e valori mancanti."""
    return pd.to_numeric(series, errors="coerce")


def _load_csv(filename: str) -> pd.DataFrame | None:
    """Carica un CSV dalla directory configurata. Ritorna None se non esiste."""
    path = os.path.join(CSV_DIR, filename)
    if not os.path.isfile(path):
        print(f"  ⚠  File non trovato: {path}")
        return None
    df = pd.read_csv(path)
    for col in df.columns:
        if col not in ("kind", "note", "converged"):
            df[col] = _safe_float(df[col])
    return df


def _savefig(fig, name: str):
    """Salva la figura nella cartella di output."""
    os.makedirs(PLOT_DIR, exist_ok=True)
    path = os.path.join(PLOT_DIR, name)
    fig.savefig(path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    print(f"  ✓ Salvato: {path}")


def _with_shape_label(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["elements"] = df["m"] * df["n"]
    df["shape"] = df["m"].astype(int).astype(str) + "×" + df["n"].astype(int).astype(str)
    return df


# ============================================================================
# 1. TEMPI DI CALCOLO
# ============================================================================

def plot_timing(df: pd.DataFrame, kind: str):
    """Tempo medio per forma della matrice, EISPACK vs numpy."""
    df = _with_shape_label(df.dropna(subset=["time_custom_s"]))
    agg = df.groupby(["shape", "elements"], as_index=False)[["time_custom_s", "time_numpy_s"]].mean()
    agg = agg.sort_values("elements")
    if agg.empty:
        return

    x = np.arange(len(agg))
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.bar(x - 0.2, agg["time_custom_s"], width=0.4, color=PALETTE[0], label="EISPACK (Python)")
    ax.bar(x + 0.2, agg["time_numpy_s"], width=0.4, color=PALETTE[1], label="numpy.linalg.svd")
    ax.set_yscale("log")
    ax.set_xticks(x)
    ax.set_xticklabels(agg["shape"], rotation=30)
    ax.set_ylabel("Tempo medio [s]")
    ax.set_title(f"Tempi di calcolo — matrici '{kind}'")
    ax.legend()
    _savefig(fig, f"timing_{kind}.png")


# ============================================================================
# 2. ACCURATEZZA
# ============================================================================

def plot_accuracy(df: pd.DataFrame, kind: str):
    """Errori massimi per forma della matrice (scala logaritmica)."""
    df = _with_shape_label(df.dropna(subset=["recon_rel_error"]))
    cols = [c for c in ERROR_COLUMNS if c in df.columns]
    agg = df.groupby(["shape", "elements"], as_index=False)[cols].max().sort_values("elements")
    if agg.empty:
        return

    fig, ax = plt.subplots(figsize=(7, 4))
    for i, col in enumerate(cols):
        # gli zeri esatti non sono rappresentabili in scala log
        values = agg[col].clip(lower=1e-18)
        ax.plot(agg["shape"], values, marker="o", color=PALETTE[i % len(PALETTE)], label=ERROR_COLUMNS[col])
    ax.axhline(np.finfo(np.float64).eps, color="grey", linestyle="--", linewidth=1, label="ε macchina")
    ax.set_yscale("log")
    ax.set_ylabel("Errore massimo")
    ax.set_title(f"Accuratezza — matrici '{kind}'")
    ax.tick_params(axis="x", rotation=30)
    ax.legend(loc="upper left")
    _savefig(fig, f"accuracy_{kind}.png")


# ============================================================================
# 3. RANGO NUMERICO
# ============================================================================

def plot_rank(frames: dict[str, pd.DataFrame]):
    """Rango stimato (valori singolari non azzerati) rispetto a min(m, n)."""
    fig, ax = plt.subplots(figsize=(6, 4))
    for i, (kind, df) in enumerate(frames.items()):
        df = _with_shape_label(df.dropna(subset=["rank"]))
        agg = df.groupby(["shape", "elements"], as_index=False).agg(
            rank=("rank", "mean"), m=("m", "first"), n=("n", "first"),
        ).sort_values("elements")
        ax.plot(agg["shape"], agg["rank"], marker="s", color=PALETTE[i % len(PALETTE)], label=kind)
        if i == 0:
            ax.plot(agg["shape"], np.minimum(agg["m"], agg["n"]), color="grey",
                    linestyle=":", label="min(m, n)")
    ax.set_ylabel("Rango numerico")
    ax.set_title("Valori singolari non azzerati da svd_sort")
    ax.tick_params(axis="x", rotation=30)
    ax.legend()
    _savefig(fig, "rank.png")


# ============================================================================
# MAIN
# ============================================================================

def main():
    print(f"{'=' * 60}")
    print("GENERAZIONE GRAFICI — BENCHMARK SVD")
    print(f"{'=' * 60}")
    print(f"CSV dir:  {CSV_DIR}")
    print(f"Plot dir: {PLOT_DIR}")
    print()

    os.makedirs(PLOT_DIR, exist_ok=True)

    frames = {}
    for kind in KINDS:
        df = _load_csv(f"results_{kind}.csv")
        if df is None:
            continue
        frames[kind] = df

        print(f"\n📊 Matrici '{kind}'")
        plot_timing(df, kind)
        plot_accuracy(df, kind)

    if frames:
        print("\n📊 Rango numerico")
        plot_rank(frames)

    print(f"\n{'=' * 60}")
    print("GRAFICI COMPLETATI")
    print(f"{'=' * 60}")
    print(f"Output: {PLOT_DIR}")
    print()


if __name__ == "__main__":
    main()
