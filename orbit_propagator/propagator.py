"""
SGP4/SDP4 Propagator

Initializes an immutable SatelliteRecord from decoded mean elements and
propagates it to any time offset with a pure function. The near-Earth or
deep-space branch is fixed at initialization from the orbital period.

Implementation details:
- Un-Kozai of the TLE mean motion and the full SGP4 secular drag terms
- Simplified drag (isimp) for perigees below 220 km
- Deep-space lunar-solar and resonance terms (see deep_space.py)
- Newton solution of Kepler's equation with bounded step and iteration count
- Short-period periodics and TEME orientation vectors
- Output in km and km/s

Error codes follow the reference model (see errors.SGP4_ERROR_CODES). Errors
detected during initialization raise InvalidElementsError; errors at a time
offset raise PropagationFailureError, or DecayedError once the satellite is
below the surface.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from orbit_propagator.deep_space import (
    DeepSpaceTerms,
    Resonance,
    ResonanceCheckpoints,
    dpper,
    dspace,
    init_deep_space,
    resonance_checkpoints,
)
from orbit_propagator.errors import (
    DECAY_CODE,
    InvalidElementsError,
    InvalidRequestError,
    PropagationError,
    describe_error_code,
    error_for_code,
)
from orbit_propagator.frames import gstime
from orbit_propagator.gravity import EarthGravity
from orbit_propagator.settings import (
    DEFAULT_CONFIG,
    KEPLER_MAX_ITER,
    KEPLER_TOLERANCE,
    PropagatorConfig,
)
from orbit_propagator.state import Frame, OrbitalElements, StateVector

logger = logging.getLogger(__name__)

TWOPI = 2.0 * math.pi
X2O3 = 2.0 / 3.0
TEMP4 = 1.5e-12

# Days between 1950 Jan 0.0 and the Julian date origin
JD_1950 = 2433281.5

# Perigee (km above the surface) below which simplified drag is used
SIMPLIFIED_DRAG_PERIGEE_KM = 220.0

# Maximum Newton correction per Kepler iteration (rad)
KEPLER_MAX_STEP = 0.95


class OrbitBranch(Enum):
    NEAR_EARTH = "n"
    DEEP_SPACE = "d"


@dataclass(frozen=True)
class SatelliteRecord:
    """
    Initialized SGP4 state for one element set.

    Every field is computed once by initialize() and never changes, so a
    record can be propagated concurrently from any number of threads.
    """

    elements: OrbitalElements
    config: PropagatorConfig
    gravity: EarthGravity
    branch: OrbitBranch
    isimp: bool
    no_unkozai: float
    a: float  # semi-major axis (Earth radii)
    alta: float  # apogee altitude (Earth radii)
    altp: float  # perigee altitude (Earth radii)
    gsto: float
    con41: float
    cc1: float
    cc4: float
    cc5: float
    d2: float
    d3: float
    d4: float
    delmo: float
    eta: float
    argpdot: float
    omgcof: float
    sinmao: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    x1mth2: float
    x7thm1: float
    mdot: float
    nodedot: float
    xlcof: float
    xmcof: float
    nodecf: float
    aycof: float
    deep_space: Optional[DeepSpaceTerms] = None

    @property
    def satnum(self) -> int:
        return self.elements.satnum

    @property
    def jdsatepoch(self) -> float:
        return self.elements.jdsatepoch

    @property
    def jdsatepochF(self) -> float:
        return self.elements.jdsatepochF

    @property
    def resonance(self) -> Resonance:
        if self.deep_space is None:
            return Resonance.NONE
        return self.deep_space.resonance

    @property
    def period_minutes(self) -> float:
        return TWOPI / self.no_unkozai

    @property
    def perigee_altitude_km(self) -> float:
        return self.altp * self.gravity.radiusearthkm

    @property
    def apogee_altitude_km(self) -> float:
        return self.alta * self.gravity.radiusearthkm

    def checkpoints(self, horizon: float) -> Optional[ResonanceCheckpoints]:
        """Resonance integrator checkpoints out to horizon minutes, None if not resonant."""
        if self.resonance is Resonance.NONE:
            return None
        return resonance_checkpoints(self.deep_space, horizon, self.elements.argpo,
                                     self.argpdot, self.no_unkozai)

    def propagate(self, tsince: float,
                  checkpoints: Optional[ResonanceCheckpoints] = None) -> StateVector:
        return propagate(self, tsince, checkpoints)


def _afspc_sidereal_time(epoch: float) -> float:
    """Greenwich sidereal time as computed by the AFSPC operational code."""
    ts70 = epoch - 7305.0
    ds70 = math.floor(ts70 + 1.0e-8)
    tfrac = ts70 - ds70
    c1 = 1.72027916940703639e-2
    thgr70 = 1.7321343856509374
    fk5r = 5.07551419432269442e-15
    c1p2p = c1 + TWOPI
    gsto = math.fmod(thgr70 + c1 * ds70 + c1p2p * tfrac + ts70 * ts70 * fk5r, TWOPI)
    if gsto < 0.0:
        gsto += TWOPI
    return gsto


def initialize(elements: OrbitalElements,
               config: Optional[PropagatorConfig] = None) -> SatelliteRecord:
    """
    Derive every SGP4 working constant from the mean elements.

    Args:
        elements: Decoded TLE elements
        config: Propagation settings (default: WGS-84, improved mode)

    Returns:
        Immutable SatelliteRecord

    Raises:
        InvalidElementsError: elements are physically invalid, or the epoch
            state itself cannot be propagated
    """
    config = config or DEFAULT_CONFIG
    grav = config.gravity
    xke, j2, j4, j3oj2 = grav.xke, grav.j2, grav.j4, grav.j3oj2
    re = grav.radiusearthkm

    ecco = elements.ecco
    inclo = elements.inclo
    bstar = elements.bstar

    if not 0.0 <= ecco < 1.0:
        raise InvalidElementsError(
            f"Satellite {elements.satnum}: eccentricity {ecco} is outside [0, 1)", 1
        )
    if elements.no_kozai <= 0.0:
        raise InvalidElementsError(
            f"Satellite {elements.satnum}: mean motion {elements.no_kozai} rad/min is not positive", 2
        )

    epoch = elements.jdsatepoch + elements.jdsatepochF - JD_1950

    ss = 78.0 / re + 1.0
    qzms2t = ((120.0 - 78.0) / re) ** 4

    # ---- un-Kozai the mean motion ----
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(inclo)
    cosio2 = cosio * cosio

    ak = math.pow(xke / elements.no_kozai, X2O3)
    d1 = 0.75 * j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    delta = d1 / (ak * ak)
    adel = ak * (1.0 - delta * delta - delta * (1.0 / 3.0 + 134.0 * delta * delta / 81.0))
    delta = d1 / (adel * adel)
    no_unkozai = elements.no_kozai / (1.0 + delta)

    ao = math.pow(xke / no_unkozai, X2O3)
    sinio = math.sin(inclo)
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)

    if config.opsmode == "a":
        gsto = _afspc_sidereal_time(epoch)
    else:
        gsto = gstime(epoch + JD_1950)

    if rp < 1.0:
        raise InvalidElementsError(
            f"Satellite {elements.satnum}: perigee radius {rp * re:.1f} km is below the surface", 5
        )

    a = math.pow(no_unkozai * grav.tumin, -X2O3)
    alta = a * (1.0 + ecco) - 1.0
    altp = a * (1.0 - ecco) - 1.0

    isimp = rp < (SIMPLIFIED_DRAG_PERIGEE_KM / re + 1.0)

    # perigees below 156 km alter s and qoms2t
    sfour = ss
    qzms24 = qzms2t
    perige = (rp - 1.0) * re
    if perige < 156.0:
        sfour = perige - 78.0
        if perige < 98.0:
            sfour = 20.0
        qzms24 = ((120.0 - sfour) / re) ** 4
        sfour = sfour / re + 1.0

    pinvsq = 1.0 / posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * tsi ** 4
    coef1 = coef / psisq ** 3.5
    cc2 = coef1 * no_unkozai * (
        ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.375 * j2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    cc1 = bstar * cc2
    cc3 = 0.0
    if ecco > 1.0e-4:
        cc3 = -2.0 * coef * tsi * j3oj2 * no_unkozai * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = 2.0 * no_unkozai * coef1 * ao * omeosq * (
        eta * (2.0 + 0.5 * etasq) + ecco * (0.5 + 2.0 * etasq)
        - j2 * tsi / (ao * psisq) * (
            -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * elements.argpo)
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no_unkozai
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * j4 * pinvsq * pinvsq * no_unkozai
    mdot = (no_unkozai + 0.5 * temp1 * rteosq * con41
            + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4))
    argpdot = (-0.5 * temp1 * con42
               + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
               + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4))
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * cosio2)
                        + 2.0 * temp3 * (3.0 - 7.0 * cosio2)) * cosio
    xpidot = argpdot + nodedot
    omgcof = bstar * cc3 * math.cos(elements.argpo)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -X2O3 * coef * bstar / eeta
    nodecf = 3.5 * omeosq * xhdot1 * cc1
    t2cof = 1.5 * cc1

    # avoid a divide by zero for 180 deg inclination
    if abs(cosio + 1.0) > 1.5e-12:
        xlcof = -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / (1.0 + cosio)
    else:
        xlcof = -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / TEMP4
    aycof = -0.5 * j3oj2 * sinio
    delmotemp = 1.0 + eta * math.cos(elements.mo)
    delmo = delmotemp * delmotemp * delmotemp
    sinmao = math.sin(elements.mo)
    x7thm1 = 7.0 * cosio2 - 1.0

    deep_space = None
    branch = OrbitBranch.NEAR_EARTH
    if TWOPI / no_unkozai >= config.deep_space_period_min:
        branch = OrbitBranch.DEEP_SPACE
        isimp = True
        deep_space = init_deep_space(
            epoch, ecco, elements.argpo, inclo, elements.nodeo, elements.mo,
            no_unkozai, xke, gsto, mdot, nodedot, xpidot, eccsq,
        )

    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not isimp:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        t3cof = d2 + 2.0 * cc1sq
        t4cof = 0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq))
        t5cof = 0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2
                       + 15.0 * cc1sq * (2.0 * d2 + cc1sq))

    record = SatelliteRecord(
        elements=elements, config=config, gravity=grav, branch=branch,
        isimp=isimp, no_unkozai=no_unkozai, a=a, alta=alta, altp=altp,
        gsto=gsto, con41=con41, cc1=cc1, cc4=cc4, cc5=cc5, d2=d2, d3=d3,
        d4=d4, delmo=delmo, eta=eta, argpdot=argpdot, omgcof=omgcof,
        sinmao=sinmao, t2cof=t2cof, t3cof=t3cof, t4cof=t4cof, t5cof=t5cof,
        x1mth2=x1mth2, x7thm1=x7thm1, mdot=mdot, nodedot=nodedot,
        xlcof=xlcof, xmcof=xmcof, nodecf=nodecf, aycof=aycof,
        deep_space=deep_space,
    )

    logger.debug(
        f"Initialized satellite {elements.satnum}: branch={branch.name}, "
        f"resonance={record.resonance.name}, simplified_drag={isimp}, "
        f"period={record.period_minutes:.2f} min, perigee={record.perigee_altitude_km:.1f} km"
    )

    # the epoch state must itself be valid
    try:
        propagate(record, 0.0)
    except PropagationError as exc:
        raise InvalidElementsError(
            f"Satellite {elements.satnum}: epoch elements cannot be propagated ({exc.message})",
            exc.code,
        ) from exc

    return record


def solve_kepler(u: float, axnl: float, aynl: float,
                 tolerance: float = KEPLER_TOLERANCE,
                 max_iter: int = KEPLER_MAX_ITER) -> Tuple[float, float, float]:
    """
    Solve Kepler's equation in equinoctial form by Newton iteration.

    Each correction is clamped to +/-0.95 rad so the iteration cannot run away
    for high eccentricities.

    Args:
        u: Mean longitude minus node (rad)
        axnl, aynl: Eccentricity vector components (e cos w, e sin w + lp term)
        tolerance: Stop once a correction is smaller than this (rad)
        max_iter: Maximum number of iterations

    Returns:
        Tuple of (eo1, sin, cos) where sin/cos were evaluated at the start of
        the final iteration
    """
    eo1 = u
    tem5 = 9999.9
    ktr = 1
    sineo1 = coseo1 = 0.0
    while abs(tem5) >= tolerance and ktr <= max_iter:
        sineo1 = math.sin(eo1)
        coseo1 = math.cos(eo1)
        tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
        tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
        if abs(tem5) >= KEPLER_MAX_STEP:
            tem5 = KEPLER_MAX_STEP if tem5 > 0.0 else -KEPLER_MAX_STEP
        eo1 = eo1 + tem5
        ktr += 1
    return eo1, sineo1, coseo1


def _fail(record: SatelliteRecord, code: int, tsince: float) -> PropagationError:
    error = error_for_code(code, tsince)
    diagnostics = describe_error_code(code)
    log = logger.info if code == DECAY_CODE else logger.warning
    log(f"Satellite {record.satnum}: {error.message}. {diagnostics['physical_meaning']}")
    return error


def propagate(record: SatelliteRecord, tsince: float,
              checkpoints: Optional[ResonanceCheckpoints] = None) -> StateVector:
    """
    Propagate a satellite record to a time offset.

    Args:
        record: Initialized SatelliteRecord
        tsince: Minutes since the element epoch (may be negative)
        checkpoints: Resonance integrator states from record.checkpoints();
            speeds up long resonant spans without changing the result

    Returns:
        StateVector in the TEME frame (km, km/s)

    Raises:
        PropagationFailureError: eccentricity or semi-latus rectum out of range
        DecayedError: geocentric radius below the decay threshold
        InvalidRequestError: tsince is not finite
    """
    if not math.isfinite(tsince):
        raise InvalidRequestError(f"Time offset must be finite, got {tsince}")

    el = record.elements
    grav = record.gravity
    xke = grav.xke
    j2 = grav.j2
    j3oj2 = grav.j3oj2
    vkmpersec = grav.radiusearthkm * xke / 60.0
    config = record.config
    t = float(tsince)

    # ---- secular gravity and atmospheric drag ----
    xmdf = el.mo + record.mdot * t
    argpdf = el.argpo + record.argpdot * t
    nodedf = el.nodeo + record.nodedot * t
    argpm = argpdf
    mm = xmdf
    t2 = t * t
    nodem = nodedf + record.nodecf * t2
    tempa = 1.0 - record.cc1 * t
    tempe = el.bstar * record.cc4 * t
    templ = record.t2cof * t2

    if not record.isimp:
        delomg = record.omgcof * t
        delmtemp = 1.0 + record.eta * math.cos(xmdf)
        delm = record.xmcof * (delmtemp * delmtemp * delmtemp - record.delmo)
        temp = delomg + delm
        mm = xmdf + temp
        argpm = argpdf - temp
        t3 = t2 * t
        t4 = t3 * t
        tempa = tempa - record.d2 * t2 - record.d3 * t3 - record.d4 * t4
        tempe = tempe + el.bstar * record.cc5 * (math.sin(mm) - record.sinmao)
        templ = templ + record.t3cof * t3 + t4 * (record.t4cof + t * record.t5cof)

    nm = record.no_unkozai
    em = el.ecco
    inclm = el.inclo
    deep = record.deep_space
    if deep is not None:
        em, argpm, inclm, mm, nodem, nm = dspace(
            deep, t, em, argpm, inclm, mm, nodem, nm,
            el.argpo, record.argpdot, record.gsto, record.no_unkozai, checkpoints,
        )

    if nm <= 0.0:
        raise _fail(record, 2, t)

    # drag has collapsed the semi-major axis
    if tempa <= 0.0:
        raise _fail(record, DECAY_CODE, t)

    am = math.pow(xke / nm, X2O3) * tempa * tempa
    nm = xke / math.pow(am, 1.5)
    em = em - tempe

    if em >= 1.0 or em < -0.001:
        raise _fail(record, 1, t)
    if em < 1.0e-6:
        em = 1.0e-6

    mm = mm + record.no_unkozai * templ
    xlm = mm + argpm + nodem

    nodem = math.fmod(nodem, TWOPI)
    argpm = math.fmod(argpm, TWOPI)
    xlm = math.fmod(xlm, TWOPI)
    mm = math.fmod(xlm - argpm - nodem, TWOPI)

    sinim = math.sin(inclm)
    cosim = math.cos(inclm)

    # ---- lunar-solar periodics ----
    ep = em
    xincp = inclm
    argpp = argpm
    nodep = nodem
    mp = mm
    sinip = sinim
    cosip = cosim
    aycof = record.aycof
    xlcof = record.xlcof
    con41 = record.con41
    x1mth2 = record.x1mth2
    x7thm1 = record.x7thm1

    if deep is not None:
        ep, xincp, nodep, argpp, mp = dpper(deep, t, ep, xincp, nodep, argpp, mp,
                                            config.opsmode)
        if xincp < 0.0:
            xincp = -xincp
            nodep = nodep + math.pi
            argpp = argpp - math.pi
        if ep < 0.0 or ep > 1.0:
            raise _fail(record, 3, t)

        sinip = math.sin(xincp)
        cosip = math.cos(xincp)
        aycof = -0.5 * j3oj2 * sinip
        if abs(cosip + 1.0) > 1.5e-12:
            xlcof = -0.25 * j3oj2 * sinip * (3.0 + 5.0 * cosip) / (1.0 + cosip)
        else:
            xlcof = -0.25 * j3oj2 * sinip * (3.0 + 5.0 * cosip) / TEMP4

    # ---- long period periodics ----
    axnl = ep * math.cos(argpp)
    temp = 1.0 / (am * (1.0 - ep * ep))
    aynl = ep * math.sin(argpp) + temp * aycof
    xl = mp + argpp + nodep + temp * xlcof * axnl

    el2 = axnl * axnl + aynl * aynl
    pl = am * (1.0 - el2)
    if pl <= 0.0:
        raise _fail(record, 4, t)

    # ---- Kepler's equation ----
    u = math.fmod(xl - nodep, TWOPI)
    eo1, sineo1, coseo1 = solve_kepler(u, axnl, aynl, config.kepler_tolerance,
                                       config.kepler_max_iter)

    # ---- short period preliminary quantities ----
    ecose = axnl * coseo1 + aynl * sineo1
    esine = axnl * sineo1 - aynl * coseo1
    rl = am * (1.0 - ecose)
    rdotl = math.sqrt(am) * esine / rl
    rvdotl = math.sqrt(pl) / rl
    betal = math.sqrt(1.0 - el2)
    temp = esine / (1.0 + betal)
    sinu = am / rl * (sineo1 - aynl - axnl * temp)
    cosu = am / rl * (coseo1 - axnl + aynl * temp)
    su = math.atan2(sinu, cosu)
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    temp = 1.0 / pl
    temp1 = 0.5 * j2 * temp
    temp2 = temp1 * temp

    if deep is not None:
        cosisq = cosip * cosip
        con41 = 3.0 * cosisq - 1.0
        x1mth2 = 1.0 - cosisq
        x7thm1 = 7.0 * cosisq - 1.0

    # ---- short period periodics ----
    mrt = rl * (1.0 - 1.5 * temp2 * betal * con41) + 0.5 * temp1 * x1mth2 * cos2u
    su = su - 0.25 * temp2 * x7thm1 * sin2u
    xnode = nodep + 1.5 * temp2 * cosip * sin2u
    xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
    mvt = rdotl - nm * temp1 * x1mth2 * sin2u / xke
    rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / xke

    if mrt < config.decay_radius_er:
        raise _fail(record, DECAY_CODE, t)

    # ---- orientation vectors ----
    sinsu = math.sin(su)
    cossu = math.cos(su)
    snod = math.sin(xnode)
    cnod = math.cos(xnode)
    sini = math.sin(xinc)
    cosi = math.cos(xinc)
    xmx = -snod * cosi
    xmy = cnod * cosi
    ux = xmx * sinsu + cnod * cossu
    uy = xmy * sinsu + snod * cossu
    uz = sini * sinsu
    vx = xmx * cossu - cnod * sinsu
    vy = xmy * cossu - snod * sinsu
    vz = sini * cossu

    mr = mrt * grav.radiusearthkm
    position = (mr * ux, mr * uy, mr * uz)
    velocity = ((mvt * ux + rvdot * vx) * vkmpersec,
                (mvt * uy + rvdot * vy) * vkmpersec,
                (mvt * uz + rvdot * vz) * vkmpersec)

    return StateVector(position, velocity, Frame.TEME)
