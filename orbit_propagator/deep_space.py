"""
Deep-Space (SDP4) Terms

Lunar-solar perturbations and geopotential resonance for orbits with periods
of 225 minutes or more.

    dscom   lunar and solar coefficients common to init and propagation
    dsinit  secular rates and resonance coefficients
    dspace  secular update plus numerical integration of resonance terms
    dpper   lunar-solar long-period periodics (with the Lyddane modification
            for inclinations below 0.2 rad)

All coefficients are computed once at initialization and frozen in
DeepSpaceTerms. The resonance integrator restarts from epoch, or from a
read-only table of ResonanceCheckpoints built for a span, so a propagation
depends only on the record and the time offset.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

TWOPI = 2.0 * math.pi
X2O3 = 2.0 / 3.0

# Solar and lunar perturbation constants
ZES = 0.01675
ZEL = 0.05490
C1SS = 2.9864797e-6
C1L = 4.7968065e-7
ZSINIS = 0.39785416
ZCOSIS = 0.91744867
ZCOSGS = 0.1945905
ZSINGS = -0.98088458
ZNS = 1.19459e-5
ZNL = 1.5835218e-4

# Resonance constants
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
RPTIM = 4.37526908801129966e-3  # Earth rotation rate, rad/min

FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898

# Resonance integrator step (minutes) and half its square
STEPP = 720.0
STEP2 = 259200.0

# Below this inclination (rad) node and perigee periodics use the Lyddane form
LYDDANE_INCLINATION = 0.2

# Inclinations within this distance (rad) of 0 or pi drop the node rate terms
SHS_INCLINATION_LIMIT = 5.2359877e-2


class Resonance(Enum):
    NONE = 0
    SYNCHRONOUS = 1  # 24-hour, geosynchronous
    HALF_DAY = 2  # 12-hour, Molniya-type


def classify_resonance(nm: float, em: float) -> Resonance:
    """Resonance class from mean motion (rad/min) and eccentricity."""
    if 8.26e-3 <= nm <= 9.24e-3 and em >= 0.5:
        return Resonance.HALF_DAY
    if 0.0034906585 < nm < 0.0052359877:
        return Resonance.SYNCHRONOUS
    return Resonance.NONE


@dataclass(frozen=True)
class DeepSpaceTerms:
    """Frozen deep-space coefficients for one satellite."""

    resonance: Resonance

    # lunar-solar periodic coefficients
    e3: float
    ee2: float
    se2: float
    se3: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    zmol: float
    zmos: float
    peo: float
    pgho: float
    pho: float
    pinco: float
    plo: float

    # lunar-solar secular rates
    dedt: float
    didt: float
    dmdt: float
    dnodt: float
    domdt: float

    # resonance coefficients
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    xfact: float = 0.0
    xlamo: float = 0.0


def dscom(epoch: float, ep: float, argpp: float, tc: float, inclp: float,
          nodep: float, np_: float) -> Dict[str, Any]:
    """
    Lunar and solar terms shared by initialization and propagation.

    Args:
        epoch: Days since 1950 Jan 0.0 UTC
        ep: Eccentricity
        argpp: Argument of perigee (rad)
        tc: Time offset (min), zero at initialization
        inclp: Inclination (rad)
        nodep: Right ascension of ascending node (rad)
        np_: Mean motion (rad/min)

    Returns:
        Dictionary of intermediate coefficients used by dsinit and dpper
    """
    nm = np_
    em = ep
    snodm = math.sin(nodep)
    cnodm = math.cos(nodep)
    sinomm = math.sin(argpp)
    cosomm = math.cos(argpp)
    sinim = math.sin(inclp)
    cosim = math.cos(inclp)
    emsq = em * em
    betasq = 1.0 - emsq
    rtemsq = math.sqrt(betasq)

    day = epoch + 18261.5 + tc / 1440.0
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, TWOPI)
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = math.atan2(zx, zy)
    zx = gam + zx - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)

    # first pass solar, second pass lunar
    zcosg = ZCOSGS
    zsing = ZSINGS
    zcosi = ZCOSIS
    zsini = ZSINIS
    zcosh = cnodm
    zsinh = snodm
    cc = C1SS
    xnoi = 1.0 / nm

    solar = None
    for lsflg in (1, 2):
        a1 = zcosg * zcosh + zsing * zcosi * zsinh
        a3 = -zsing * zcosh + zcosg * zcosi * zsinh
        a7 = -zcosg * zsinh + zsing * zcosi * zcosh
        a8 = zsing * zsini
        a9 = zsing * zsinh + zcosg * zcosi * zcosh
        a10 = zcosg * zsini
        a2 = cosim * a7 + sinim * a8
        a4 = cosim * a9 + sinim * a10
        a5 = -sinim * a7 + cosim * a8
        a6 = -sinim * a9 + cosim * a10

        x1 = a1 * cosomm + a2 * sinomm
        x2 = a3 * cosomm + a4 * sinomm
        x3 = -a1 * sinomm + a2 * cosomm
        x4 = -a3 * sinomm + a4 * cosomm
        x5 = a5 * sinomm
        x6 = a6 * sinomm
        x7 = a5 * cosomm
        x8 = a6 * cosomm

        z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
        z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
        z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
        z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
        z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
        z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
        z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
        z12 = (-6.0 * (a1 * a6 + a3 * a5)
               + emsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)))
        z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
        z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
        z22 = (6.0 * (a4 * a5 + a2 * a6)
               + emsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)))
        z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
        z1 = z1 + z1 + betasq * z31
        z2 = z2 + z2 + betasq * z32
        z3 = z3 + z3 + betasq * z33
        s3 = cc * xnoi
        s2 = -0.5 * s3 / rtemsq
        s4 = s3 * rtemsq
        s1 = -15.0 * em * s4
        s5 = x1 * x3 + x2 * x4
        s6 = x2 * x3 + x1 * x4
        s7 = x2 * x4 - x1 * x3

        if lsflg == 1:
            solar = dict(
                ss1=s1, ss2=s2, ss3=s3, ss4=s4, ss5=s5, ss6=s6, ss7=s7,
                sz1=z1, sz2=z2, sz3=z3, sz11=z11, sz12=z12, sz13=z13,
                sz21=z21, sz22=z22, sz23=z23, sz31=z31, sz32=z32, sz33=z33,
            )
            zcosg = zcosgl
            zsing = zsingl
            zcosi = zcosil
            zsini = zsinil
            zcosh = zcoshl * cnodm + zsinhl * snodm
            zsinh = snodm * zcoshl - cnodm * zsinhl
            cc = C1L

    zmol = math.fmod(4.7199672 + 0.22997150 * day - gam, TWOPI)
    zmos = math.fmod(6.2565837 + 0.017201977 * day, TWOPI)

    ss1, ss2, ss3, ss4 = solar["ss1"], solar["ss2"], solar["ss3"], solar["ss4"]

    result = dict(solar)
    result.update(
        sinim=sinim, cosim=cosim, emsq=emsq, em=em, nm=nm,
        s1=s1, s2=s2, s3=s3, s4=s4, s5=s5, s6=s6, s7=s7,
        z1=z1, z2=z2, z3=z3, z11=z11, z12=z12, z13=z13,
        z21=z21, z22=z22, z23=z23, z31=z31, z32=z32, z33=z33,
        zmol=zmol, zmos=zmos,
        # solar periodics
        se2=2.0 * ss1 * solar["ss6"],
        se3=2.0 * ss1 * solar["ss7"],
        si2=2.0 * ss2 * solar["sz12"],
        si3=2.0 * ss2 * (solar["sz13"] - solar["sz11"]),
        sl2=-2.0 * ss3 * solar["sz2"],
        sl3=-2.0 * ss3 * (solar["sz3"] - solar["sz1"]),
        sl4=-2.0 * ss3 * (-21.0 - 9.0 * emsq) * ZES,
        sgh2=2.0 * ss4 * solar["sz32"],
        sgh3=2.0 * ss4 * (solar["sz33"] - solar["sz31"]),
        sgh4=-18.0 * ss4 * ZES,
        sh2=-2.0 * ss2 * solar["sz22"],
        sh3=-2.0 * ss2 * (solar["sz23"] - solar["sz21"]),
        # lunar periodics
        ee2=2.0 * s1 * s6,
        e3=2.0 * s1 * s7,
        xi2=2.0 * s2 * z12,
        xi3=2.0 * s2 * (z13 - z11),
        xl2=-2.0 * s3 * z2,
        xl3=-2.0 * s3 * (z3 - z1),
        xl4=-2.0 * s3 * (-21.0 - 9.0 * emsq) * ZEL,
        xgh2=2.0 * s4 * z32,
        xgh3=2.0 * s4 * (z33 - z31),
        xgh4=-18.0 * s4 * ZEL,
        xh2=-2.0 * s2 * z22,
        xh3=-2.0 * s2 * (z23 - z21),
    )
    return result


def _half_day_coefficients(em: float, emsq: float, sinim: float, cosim: float,
                           nm: float, aonv: float) -> Dict[str, float]:
    cosisq = cosim * cosim
    eoc = em * emsq
    g201 = -0.306 - (em - 0.64) * 0.440

    if em <= 0.65:
        g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
        g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
        g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
        g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
        g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
        g520 = -532.114 + 3017.977 * em - 5740.032 * emsq + 3708.2760 * eoc
    else:
        g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
        g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
        if em > 0.715:
            g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
        else:
            g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq

    if em < 0.7:
        g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
        g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
    else:
        g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
        g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

    sini2 = sinim * sinim
    f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
    f221 = 1.5 * sini2
    f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
    f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * sinim * (sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
                              + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq))
    f523 = sinim * (4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
                    + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq))
    f542 = 29.53125 * sinim * (2.0 - 8.0 * cosim
                               + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq))
    f543 = 29.53125 * sinim * (-2.0 - 8.0 * cosim
                               + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq))

    xno2 = nm * nm
    ainv2 = aonv * aonv
    temp1 = 3.0 * xno2 * ainv2
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aonv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aonv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aonv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    return dict(d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222,
                d4410=d4410, d4422=d4422, d5220=d5220, d5232=d5232,
                d5421=d5421, d5433=d5433)


def dsinit(common: Dict[str, Any], xke: float, argpo: float, gsto: float,
           mo: float, mdot: float, no: float, nodeo: float, nodedot: float,
           xpidot: float, ecco: float, eccsq: float, inclo: float) -> Dict[str, Any]:
    """
    Deep-space secular rates and resonance coefficients at epoch.

    Args:
        common: Output of dscom at tc=0
        xke: Gravity constant sqrt(mu) in canonical units
        argpo, mo, nodeo: Epoch angles (rad)
        gsto: Greenwich sidereal time at epoch (rad)
        mdot, nodedot, xpidot: Near-Earth secular rates (rad/min)
        no: Un-Kozai'd mean motion (rad/min)
        ecco, eccsq: Epoch eccentricity and its square
        inclo: Epoch inclination (rad)

    Returns:
        Dictionary of secular rates, resonance class and resonance coefficients
    """
    cosim = common["cosim"]
    sinim = common["sinim"]
    emsq = common["emsq"]
    em = common["em"]
    nm = common["nm"]
    s1, s2, s3, s4, s5 = (common[k] for k in ("s1", "s2", "s3", "s4", "s5"))
    ss1, ss2, ss3, ss4, ss5 = (common[k] for k in ("ss1", "ss2", "ss3", "ss4", "ss5"))

    resonance = classify_resonance(nm, em)

    # solar terms
    ses = ss1 * ZNS * ss5
    sis = ss2 * ZNS * (common["sz11"] + common["sz13"])
    sls = -ZNS * ss3 * (common["sz1"] + common["sz3"] - 14.0 - 6.0 * emsq)
    sghs = ss4 * ZNS * (common["sz31"] + common["sz33"] - 6.0)
    shs = -ZNS * ss2 * (common["sz21"] + common["sz23"])
    near_polar_axis = (inclo < SHS_INCLINATION_LIMIT
                       or inclo > math.pi - SHS_INCLINATION_LIMIT)
    if near_polar_axis:
        shs = 0.0
    if sinim != 0.0:
        shs = shs / sinim
    sgs = sghs - cosim * shs

    # lunar terms
    dedt = ses + s1 * ZNL * s5
    didt = sis + s2 * ZNL * (common["z11"] + common["z13"])
    dmdt = sls - ZNL * s3 * (common["z1"] + common["z3"] - 14.0 - 6.0 * emsq)
    sghl = s4 * ZNL * (common["z31"] + common["z33"] - 6.0)
    shll = -ZNL * s2 * (common["z21"] + common["z23"])
    if near_polar_axis:
        shll = 0.0
    domdt = sgs + sghl
    dnodt = shs
    if sinim != 0.0:
        domdt = domdt - cosim / sinim * shll
        dnodt = dnodt + shll / sinim

    result = dict(resonance=resonance, dedt=dedt, didt=didt, dmdt=dmdt,
                  dnodt=dnodt, domdt=domdt)

    if resonance is Resonance.NONE:
        return result

    theta = math.fmod(gsto, TWOPI)
    aonv = math.pow(nm / xke, X2O3)

    if resonance is Resonance.HALF_DAY:
        # coefficients are evaluated at the epoch eccentricity
        result.update(_half_day_coefficients(ecco, eccsq, sinim, cosim, nm, aonv))
        result["xlamo"] = math.fmod(mo + nodeo + nodeo - theta - theta, TWOPI)
        result["xfact"] = mdot + dmdt + 2.0 * (nodedot + dnodt - RPTIM) - no
    else:
        g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
        g310 = 1.0 + 2.0 * emsq
        g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
        f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
        f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
        f330 = 1.0 + cosim
        f330 = 1.875 * f330 * f330 * f330
        del1 = 3.0 * nm * nm * aonv * aonv
        result["del2"] = 2.0 * del1 * f220 * g200 * Q22
        result["del3"] = 3.0 * del1 * f330 * g300 * Q33 * aonv
        result["del1"] = del1 * f311 * g310 * Q31 * aonv
        result["xlamo"] = math.fmod(mo + nodeo + argpo - theta, TWOPI)
        result["xfact"] = mdot + xpidot - RPTIM + dmdt + domdt + dnodt - no

    return result


def init_deep_space(epoch: float, ecco: float, argpo: float, inclo: float,
                    nodeo: float, mo: float, no: float, xke: float, gsto: float,
                    mdot: float, nodedot: float, xpidot: float,
                    eccsq: float) -> DeepSpaceTerms:
    """Run dscom and dsinit at epoch and freeze the result."""
    common = dscom(epoch, ecco, argpo, 0.0, inclo, nodeo, no)
    rates = dsinit(common, xke, argpo, gsto, mo, mdot, no, nodeo, nodedot,
                   xpidot, ecco, eccsq, inclo)

    periodic_keys = ("e3", "ee2", "se2", "se3", "sgh2", "sgh3", "sgh4", "sh2", "sh3",
                     "si2", "si3", "sl2", "sl3", "sl4", "xgh2", "xgh3", "xgh4",
                     "xh2", "xh3", "xi2", "xi3", "xl2", "xl3", "xl4", "zmol", "zmos")
    fields = {key: common[key] for key in periodic_keys}
    # epoch periodics are not subtracted in the improved model
    fields.update(peo=0.0, pgho=0.0, pho=0.0, pinco=0.0, plo=0.0)
    fields.update(rates)
    return DeepSpaceTerms(**fields)


def _resonance_rates(terms: DeepSpaceTerms, xli: float, xni: float, atime: float,
                     argpo: float, argpdot: float) -> Tuple[float, float, float]:
    if terms.resonance is Resonance.SYNCHRONOUS:
        xndt = (terms.del1 * math.sin(xli - FASX2)
                + terms.del2 * math.sin(2.0 * (xli - FASX4))
                + terms.del3 * math.sin(3.0 * (xli - FASX6)))
        xldot = xni + terms.xfact
        xnddt = (terms.del1 * math.cos(xli - FASX2)
                 + 2.0 * terms.del2 * math.cos(2.0 * (xli - FASX4))
                 + 3.0 * terms.del3 * math.cos(3.0 * (xli - FASX6)))
        return xndt, xldot, xnddt * xldot

    xomi = argpo + argpdot * atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndt = (terms.d2201 * math.sin(x2omi + xli - G22)
            + terms.d2211 * math.sin(xli - G22)
            + terms.d3210 * math.sin(xomi + xli - G32)
            + terms.d3222 * math.sin(-xomi + xli - G32)
            + terms.d4410 * math.sin(x2omi + x2li - G44)
            + terms.d4422 * math.sin(x2li - G44)
            + terms.d5220 * math.sin(xomi + xli - G52)
            + terms.d5232 * math.sin(-xomi + xli - G52)
            + terms.d5421 * math.sin(xomi + x2li - G54)
            + terms.d5433 * math.sin(-xomi + x2li - G54))
    xldot = xni + terms.xfact
    xnddt = (terms.d2201 * math.cos(x2omi + xli - G22)
             + terms.d2211 * math.cos(xli - G22)
             + terms.d3210 * math.cos(xomi + xli - G32)
             + terms.d3222 * math.cos(-xomi + xli - G32)
             + terms.d5220 * math.cos(xomi + xli - G52)
             + terms.d5232 * math.cos(-xomi + xli - G52)
             + 2.0 * (terms.d4410 * math.cos(x2omi + x2li - G44)
                      + terms.d4422 * math.cos(x2li - G44)
                      + terms.d5421 * math.cos(xomi + x2li - G54)
                      + terms.d5433 * math.cos(-xomi + x2li - G54)))
    return xndt, xldot, xnddt * xldot


@dataclass(frozen=True)
class ResonanceCheckpoints:
    """
    Resonance integrator states at every STEPP minutes from epoch.

    Built once for a time span so repeated propagation over that span resumes
    integration from the nearest checkpoint instead of from epoch. States are
    produced by the same fixed-step recursion, so results are bit-identical.
    """

    step: float  # +STEPP or -STEPP
    states: Tuple[Tuple[float, float], ...]  # (xli, xni) at atime = k * step

    def start(self, t: float) -> Optional[Tuple[float, float, float]]:
        """Latest checkpoint the integration to t passes, as (atime, xli, xni)."""
        if (t > 0.0) != (self.step > 0.0):
            return None
        # one step short, so the usual stopping test still decides the last step
        index = min(int(abs(t) // STEPP) - 1, len(self.states) - 1)
        if index <= 0:
            return None
        xli, xni = self.states[index]
        return index * self.step, xli, xni


def resonance_checkpoints(terms: DeepSpaceTerms, horizon: float, argpo: float,
                          argpdot: float, no: float) -> ResonanceCheckpoints:
    """
    Integrate the resonance terms from epoch out to a horizon.

    Args:
        terms: Frozen deep-space coefficients of a resonant orbit
        horizon: Furthest time offset that will be requested (minutes)
        argpo, argpdot: Epoch argument of perigee and its rate
        no: Un-Kozai'd mean motion (rad/min)

    Returns:
        ResonanceCheckpoints covering [0, horizon]
    """
    delt = STEPP if horizon > 0.0 else -STEPP
    atime = 0.0
    xli = terms.xlamo
    xni = no
    states = [(xli, xni)]
    while abs(horizon) - abs(atime) >= STEPP:
        xndt, xldot, xnddt = _resonance_rates(terms, xli, xni, atime, argpo, argpdot)
        xli = xli + xldot * delt + xndt * STEP2
        xni = xni + xndt * delt + xnddt * STEP2
        atime = atime + delt
        states.append((xli, xni))
    return ResonanceCheckpoints(delt, tuple(states))


def dspace(terms: DeepSpaceTerms, t: float, em: float, argpm: float, inclm: float,
           mm: float, nodem: float, nm: float, argpo: float, argpdot: float,
           gsto: float, no: float,
           checkpoints: Optional[ResonanceCheckpoints] = None) -> Tuple[float, float, float, float, float, float]:
    """
    Apply deep-space secular rates and integrate resonance terms to time t.

    Args:
        terms: Frozen deep-space coefficients
        t: Minutes since epoch
        em, argpm, inclm, mm, nodem, nm: Mean elements after the near-Earth
            secular update
        argpo, argpdot: Epoch argument of perigee and its rate
        gsto: Greenwich sidereal time at epoch (rad)
        no: Un-Kozai'd mean motion (rad/min)
        checkpoints: Optional integrator states to resume from

    Returns:
        Tuple of (em, argpm, inclm, mm, nodem, nm)
    """
    theta = math.fmod(gsto + t * RPTIM, TWOPI)
    em = em + terms.dedt * t
    inclm = inclm + terms.didt * t
    argpm = argpm + terms.domdt * t
    nodem = nodem + terms.dnodt * t
    mm = mm + terms.dmdt * t

    if terms.resonance is Resonance.NONE:
        return em, argpm, inclm, mm, nodem, nm

    # fixed-step integration from epoch or the latest checkpoint, then a Taylor step to t
    resume = checkpoints.start(t) if checkpoints is not None else None
    if resume is None:
        atime, xli, xni = 0.0, terms.xlamo, no
    else:
        atime, xli, xni = resume
    delt = STEPP if t > 0.0 else -STEPP

    while True:
        xndt, xldot, xnddt = _resonance_rates(terms, xli, xni, atime, argpo, argpdot)
        if abs(t - atime) < STEPP:
            break
        xli = xli + xldot * delt + xndt * STEP2
        xni = xni + xndt * delt + xnddt * STEP2
        atime = atime + delt

    ft = t - atime
    nm = xni + xndt * ft + xnddt * ft * ft * 0.5
    xl = xli + xldot * ft + xndt * ft * ft * 0.5
    if terms.resonance is Resonance.SYNCHRONOUS:
        mm = xl - nodem - argpm + theta
    else:
        mm = xl - 2.0 * nodem + 2.0 * theta
    dndt = nm - no
    nm = no + dndt

    return em, argpm, inclm, mm, nodem, nm


def dpper(terms: DeepSpaceTerms, t: float, ep: float, inclp: float, nodep: float,
          argpp: float, mp: float, opsmode: str = "i") -> Tuple[float, float, float, float, float]:
    """
    Lunar-solar long-period periodics at time t.

    Returns:
        Tuple of (ep, inclp, nodep, argpp, mp)
    """
    # solar
    zm = terms.zmos + ZNS * t
    zf = zm + 2.0 * ZES * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    ses = terms.se2 * f2 + terms.se3 * f3
    sis = terms.si2 * f2 + terms.si3 * f3
    sls = terms.sl2 * f2 + terms.sl3 * f3 + terms.sl4 * sinzf
    sghs = terms.sgh2 * f2 + terms.sgh3 * f3 + terms.sgh4 * sinzf
    shs = terms.sh2 * f2 + terms.sh3 * f3

    # lunar
    zm = terms.zmol + ZNL * t
    zf = zm + 2.0 * ZEL * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    sel = terms.ee2 * f2 + terms.e3 * f3
    sil = terms.xi2 * f2 + terms.xi3 * f3
    sll = terms.xl2 * f2 + terms.xl3 * f3 + terms.xl4 * sinzf
    sghl = terms.xgh2 * f2 + terms.xgh3 * f3 + terms.xgh4 * sinzf
    shll = terms.xh2 * f2 + terms.xh3 * f3

    pe = ses + sel - terms.peo
    pinc = sis + sil - terms.pinco
    pl = sls + sll - terms.plo
    pgh = sghs + sghl - terms.pgho
    ph = shs + shll - terms.pho

    inclp = inclp + pinc
    ep = ep + pe
    sinip = math.sin(inclp)
    cosip = math.cos(inclp)

    if inclp >= LYDDANE_INCLINATION:
        ph = ph / sinip
        pgh = pgh - cosip * ph
        argpp = argpp + pgh
        nodep = nodep + ph
        mp = mp + pl
    else:
        sinop = math.sin(nodep)
        cosop = math.cos(nodep)
        alfdp = sinip * sinop
        betdp = sinip * cosop
        dalf = ph * cosop + pinc * cosip * sinop
        dbet = -ph * sinop + pinc * cosip * cosop
        alfdp = alfdp + dalf
        betdp = betdp + dbet
        nodep = math.fmod(nodep, TWOPI)
        if nodep < 0.0 and opsmode == "a":
            nodep = nodep + TWOPI
        xls = mp + argpp + cosip * nodep
        dls = pl + pgh - pinc * nodep * sinip
        xls = xls + dls
        xnoh = nodep
        nodep = math.atan2(alfdp, betdp)
        if nodep < 0.0 and opsmode == "a":
            nodep = nodep + TWOPI
        if abs(xnoh - nodep) > math.pi:
            if nodep < xnoh:
                nodep = nodep + TWOPI
            else:
                nodep = nodep - TWOPI
        mp = mp + pl
        argpp = xls - mp - cosip * nodep

    return ep, inclp, nodep, argpp, mp
