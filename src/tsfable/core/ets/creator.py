import numpy as np

from tsfable.core.utils.decomposition import msdecompose

SMOOTHING_LOWER = 1e-4
SMOOTHING_UPPER = 0.9999
PHI_LOWER = 0.8
PHI_UPPER = 0.98


def _initial_states(y, model, period):
    """
    Heuristic starting states from the first few seasonal cycles.

    The seasonal indices come from a classical decomposition of up to three
    cycles beginning with the cycle of the first observation; level and slope
    from a linear regression on the first ``max(10, 2 * period)`` observed
    values of the seasonally adjusted series, at their time positions.
    """
    error, trend, season = model
    obs_in_sample = len(y)
    observed = np.flatnonzero(~np.isnan(y))

    if season != "N":
        # start on a cycle boundary so that pattern[i] belongs to phase i
        start = observed[0] - observed[0] % period if observed.size else 0
        window = y[start : min(obs_in_sample, start + 3 * period)]
        decomposition_type = "multiplicative" if season == "M" else "additive"
        pattern = msdecompose(window, lag=period, type=decomposition_type, smoother="ma")[
            "pattern"
        ]
        positions = np.arange(obs_in_sample) % period
        if season == "M":
            pattern = pattern / np.mean(pattern)
            y_sa = y / pattern[positions]
        else:
            pattern = pattern - np.mean(pattern)
            y_sa = y - pattern[positions]
    else:
        pattern = np.zeros(period)
        y_sa = y

    maxn = min(max(10, 2 * period), obs_in_sample)
    head_positions = observed[:maxn]
    x = head_positions + 1.0
    head = y_sa[head_positions]
    if trend == "N" or head.size < 2:
        level = float(np.mean(head)) if head.size else np.nan
        slope = 0.0
    else:
        design = np.column_stack([np.ones(head.size), x])
        level, slope = np.linalg.lstsq(design, head, rcond=None)[0]
        level, slope = float(level), float(slope)

    if error == "M" or season == "M":
        # keep the first prediction strictly positive
        if level + slope <= 0:
            first = float(head[0]) if head.size else 1.0
            level = max(first, 1e-3)
            slope = 0.0

    return {"level": level, "trend": slope, "season": pattern}


def _starting_persistence(model, period, fixed):
    _, trend, season = model
    span = SMOOTHING_UPPER - SMOOTHING_LOWER
    m = period if season != "N" else 1

    alpha = fixed.get("alpha")
    if alpha is None:
        alpha = SMOOTHING_LOWER + 0.2 * span / m
        if "beta" in fixed:
            alpha = max(alpha, min(fixed["beta"] + 1e-3, SMOOTHING_UPPER))
        if "gamma" in fixed:
            alpha = min(alpha, max(1 - fixed["gamma"] - 1e-3, SMOOTHING_LOWER))
    beta = fixed.get("beta", SMOOTHING_LOWER + 0.1 * (alpha - SMOOTHING_LOWER))
    gamma = fixed.get("gamma", SMOOTHING_LOWER + 0.05 * (1 - alpha - SMOOTHING_LOWER))
    phi = fixed.get("phi", PHI_LOWER + 0.99 * (PHI_UPPER - PHI_LOWER))
    return {"alpha": alpha, "beta": beta, "gamma": gamma, "phi": phi}


def initialiser(y, model, period, fixed):
    """
    Build the parameter vector, bounds and initial simplex steps.

    The vector is laid out as ``alpha, beta, gamma, phi, level, slope,
    s_1, ..., s_{m-1}``; entries that are fixed or absent from the model are
    left out. The last seasonal index is implied by normalisation (additive
    indices sum to 0, multiplicative indices sum to ``m``).

    Parameters
    ----------
    y : numpy.ndarray
        Observations.
    model : tuple
        ``(error, trend, season)``.
    period : int
        Seasonal period.
    fixed : dict
        Fixed smoothing parameters.

    Returns
    -------
    dict
        ``B``, ``lb``, ``ub``, ``step`` (arrays) and ``names`` (list).
    """
    _, trend, season = model
    states = _initial_states(y, model, period)
    start = _starting_persistence(model, period, fixed)

    observed = y[~np.isnan(y)]
    scale = float(np.std(observed)) if observed.size > 1 else 0.0
    if scale <= 0:
        scale = max(abs(float(np.mean(observed))) * 1e-3, 1e-3) if observed.size else 1e-3

    names, B, lb, ub, step = [], [], [], [], []

    def add(name, value, lower, upper, delta):
        names.append(name)
        B.append(value)
        lb.append(lower)
        ub.append(upper)
        step.append(delta)

    smoothing_step = 0.1 * (SMOOTHING_UPPER - SMOOTHING_LOWER)
    if "alpha" not in fixed:
        add("alpha", start["alpha"], SMOOTHING_LOWER, SMOOTHING_UPPER, smoothing_step)
    if trend != "N" and "beta" not in fixed:
        add("beta", start["beta"], SMOOTHING_LOWER, SMOOTHING_UPPER, smoothing_step)
    if season != "N" and "gamma" not in fixed:
        add("gamma", start["gamma"], SMOOTHING_LOWER, SMOOTHING_UPPER, smoothing_step)
    if trend == "Ad" and "phi" not in fixed:
        add("phi", start["phi"], PHI_LOWER, PHI_UPPER, 0.02)

    add("level", states["level"], -np.inf, np.inf, 0.1 * scale)
    if trend != "N":
        diff_scale = float(np.nanstd(np.diff(y))) if len(y) > 2 else scale
        if not np.isfinite(diff_scale) or diff_scale <= 0:
            diff_scale = 0.1 * scale
        add("slope", states["trend"], -np.inf, np.inf, 0.1 * diff_scale)
    if season != "N":
        seasonal_step = 0.05 if season == "M" else 0.1 * scale
        for i in range(period - 1):
            add(f"s{i + 1}", states["season"][i], -np.inf, np.inf, seasonal_step)

    return {
        "B": np.array(B, dtype=float),
        "lb": np.array(lb, dtype=float),
        "ub": np.array(ub, dtype=float),
        "step": np.array(step, dtype=float),
        "names": names,
    }


def filler(B, names, model, period, fixed):
    """
    Unpack a parameter vector into smoothing parameters and initial states.

    Returns
    -------
    dict
        ``persistence`` (alpha, beta, gamma), ``phi`` and ``initial``.
    """
    _, trend, season = model
    values = dict(fixed)
    seasonal = []
    for name, value in zip(names, B):
        if name.startswith("s") and name[1:].isdigit():
            seasonal.append(float(value))
        else:
            values[name] = float(value)

    if season != "N":
        if season == "M":
            seasonal.append(period - sum(seasonal))
        else:
            seasonal.append(-sum(seasonal))
    season_states = np.array(seasonal) if season != "N" else np.zeros(period)

    if trend == "Ad":
        phi = values["phi"]
    else:
        phi = 1.0
    return {
        "persistence": {
            "alpha": values["alpha"],
            "beta": values.get("beta", 0.0) if trend != "N" else 0.0,
            "gamma": values.get("gamma", 0.0) if season != "N" else 0.0,
        },
        "phi": phi,
        "initial": {
            "level": values["level"],
            "trend": values.get("slope", 0.0) if trend != "N" else 0.0,
            "season": season_states,
        },
    }


def parameters_admissible(persistence, phi, initial, model):
    """Usual bounds: 0 < beta <= alpha < 1, 0 < gamma <= 1 - alpha, phi in [0.8, 0.98]."""
    _, trend, season = model
    alpha = persistence["alpha"]
    if not 0 < alpha < 1:
        return False
    if trend != "N" and not 0 < persistence["beta"] <= alpha:
        return False
    if season != "N" and not 0 < persistence["gamma"] <= 1 - alpha:
        return False
    if trend == "Ad" and not PHI_LOWER <= phi <= PHI_UPPER:
        return False
    if season == "M" and np.any(initial["season"] <= 0):
        return False
    return True
