"""
SDP4 deep-space propagator.

Extends the SGP4 secular model with lunar/solar gravitational perturbations
and, for 12-hour and 24-hour orbits, geopotential resonance. The deep-space
terms are computed once per satellite into :class:`DeepSpaceTerms`; the
secular (``dpsec``) and periodic (``dpper``) updates are pure functions of
those terms and the elapsed time.

The resonance integrator always restarts from epoch and steps in 720-minute
increments towards the requested time, so a call never depends on the time
of any previous call.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

from .constants import (
    C1L,
    C1SS,
    G22,
    G32,
    G44,
    G52,
    G54,
    JD_1950_JAN_0,
    PI,
    Q22,
    Q31,
    Q33,
    ROOT22,
    ROOT32,
    ROOT44,
    ROOT52,
    ROOT54,
    THDT,
    TOTHRD,
    TWOPI,
    XKE,
    ZCOSGS,
    ZCOSIS,
    ZEL,
    ZES,
    ZNL,
    ZNS,
    ZSINGS,
    ZSINIS,
)
from .elements import OrbitalElements
from .sgp4 import DragCoefficients, ModelState, recover_mean_elements, short_period_state
from .vector_math import ac_tan, fmod2p

# Resonance integrator step, minutes
RESONANCE_STEP = 720.0
RESONANCE_STEP2 = 0.5 * RESONANCE_STEP * RESONANCE_STEP

# Below this inclination the Lyddane modification is applied in dpper
LYDDANE_INCLINATION = 0.2


def greenwich_sidereal_at_epoch(epoch_jd: float) -> float:
    """Greenwich sidereal angle at the element epoch, from days since 1950 Jan 0.0."""
    ds50 = epoch_jd - JD_1950_JAN_0
    return fmod2p(6.3003880987 * ds50 + 1.72944494)


class LuniSolarPeriodics(NamedTuple):
    """Periodic coefficients for one perturbing body."""

    e2: float
    e3: float
    i2: float
    i3: float
    l2: float
    l3: float
    l4: float
    gh2: float
    gh3: float
    gh4: float
    h2: float
    h3: float


class _BodyTerms(NamedTuple):
    se: float
    si: float
    sl: float
    sgh: float
    sh: float
    periodics: LuniSolarPeriodics


@dataclass(frozen=True)
class ResonanceTerms:
    """Geopotential resonance coefficients."""

    synchronous: bool
    xlamo: float
    xfact: float
    # 24 hour
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    # 12 hour
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


@dataclass(frozen=True)
class DeepSpaceTerms:
    """Everything ``dpsec``/``dpper`` need, fixed at initialization."""

    thgr: float
    xnq: float
    xqncl: float
    omegaq: float
    zmos: float
    zmol: float
    sse: float
    ssi: float
    ssl: float
    ssg: float
    ssh: float
    solar: LuniSolarPeriodics
    lunar: LuniSolarPeriodics
    resonance: Optional[ResonanceTerms]


def _body_terms(
    zcosg: float,
    zsing: float,
    zcosi: float,
    zsini: float,
    zcosh: float,
    zsinh: float,
    cc: float,
    zn: float,
    ze: float,
    el: OrbitalElements,
    k: DragCoefficients,
) -> _BodyTerms:
    """Secular rates and periodic coefficients due to the sun or the moon."""
    cosg = math.cos(el.omegao)
    sing = math.sin(el.omegao)
    eosq = k.eosq

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = k.cosio * a7 + k.sinio * a8
    a4 = k.cosio * a9 + k.sinio * a10
    a5 = -k.sinio * a7 + k.cosio * a8
    a6 = -k.sinio * a9 + k.cosio * a10

    x1 = a1 * cosg + a2 * sing
    x2 = a3 * cosg + a4 * sing
    x3 = -a1 * sing + a2 * cosg
    x4 = -a3 * sing + a4 * cosg
    x5 = a5 * sing
    x6 = a6 * sing
    x7 = a5 * cosg
    x8 = a6 * cosg

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * eosq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * eosq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * eosq
    z11 = -6.0 * a1 * a5 + eosq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + eosq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5))
    z13 = -6.0 * a3 * a6 + eosq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + eosq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + eosq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8))
    z23 = 6.0 * a4 * a6 + eosq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + k.betao2 * z31
    z2 = z2 + z2 + k.betao2 * z32
    z3 = z3 + z3 + k.betao2 * z33

    s3 = cc / k.xnodp
    s2 = -0.5 * s3 / k.betao
    s4 = s3 * k.betao
    s1 = -15.0 * el.eo * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    se = s1 * zn * s5
    si = s2 * zn * (z11 + z13)
    sl = -zn * s3 * (z1 + z3 - 14.0 - 6.0 * eosq)
    sgh = s4 * zn * (z31 + z33 - 6.0)
    sh = -zn * s2 * (z21 + z23)
    if el.xincl < 5.2359877e-2:
        sh = 0.0

    periodics = LuniSolarPeriodics(
        e2=2.0 * s1 * s6,
        e3=2.0 * s1 * s7,
        i2=2.0 * s2 * z12,
        i3=2.0 * s2 * (z13 - z11),
        l2=-2.0 * s3 * z2,
        l3=-2.0 * s3 * (z3 - z1),
        l4=-2.0 * s3 * (-21.0 - 9.0 * eosq) * ze,
        gh2=2.0 * s4 * z32,
        gh3=2.0 * s4 * (z33 - z31),
        gh4=-18.0 * s4 * ze,
        h2=-2.0 * s2 * z22,
        h3=-2.0 * s2 * (z23 - z21),
    )
    return _BodyTerms(se, si, sl, sgh, sh, periodics)


def _resonance_terms(
    el: OrbitalElements, k: DragCoefficients, thgr: float, ssl: float, ssg: float, ssh: float
) -> Optional[ResonanceTerms]:
    """Resonance coefficients, or None if the orbit is not resonant."""
    xnq = k.xnodp
    eq = el.eo
    eosq = k.eosq
    aqnv = 1.0 / k.aodp
    cosio = k.cosio
    sinio = k.sinio
    theta2 = k.theta2

    if 0.0034906585 < xnq < 0.0052359877:
        # Synchronous (24 hour) resonance
        g200 = 1.0 + eosq * (-2.5 + 0.8125 * eosq)
        g310 = 1.0 + 2.0 * eosq
        g300 = 1.0 + eosq * (-6.0 + 6.60937 * eosq)
        f220 = 0.75 * (1.0 + cosio) * (1.0 + cosio)
        f311 = 0.9375 * sinio * sinio * (1.0 + 3.0 * cosio) - 0.75 * (1.0 + cosio)
        f330 = 1.875 * (1.0 + cosio) ** 3
        del1 = 3.0 * xnq * xnq * aqnv * aqnv
        del2 = 2.0 * del1 * f220 * g200 * Q22
        del3 = 3.0 * del1 * f330 * g300 * Q33 * aqnv
        del1 = del1 * f311 * g310 * Q31 * aqnv
        xlamo = el.xmo + el.xnodeo + el.omegao - thgr
        bfact = k.xmdot + (k.omgdot + k.xnodot) - THDT + ssl + ssg + ssh
        return ResonanceTerms(
            synchronous=True,
            xlamo=xlamo,
            xfact=bfact - xnq,
            del1=del1,
            del2=del2,
            del3=del3,
        )

    if xnq < 0.00826 or xnq > 0.00924 or eq < 0.5:
        return None

    # 12 hour resonance
    eoc = eq * eosq
    g201 = -0.306 - (eq - 0.64) * 0.440
    if eq <= 0.65:
        g211 = 3.616 - 13.247 * eq + 16.290 * eosq
        g310 = -19.302 + 117.390 * eq - 228.419 * eosq + 156.591 * eoc
        g322 = -18.9068 + 109.7927 * eq - 214.6334 * eosq + 146.5816 * eoc
        g410 = -41.122 + 242.694 * eq - 471.094 * eosq + 313.953 * eoc
        g422 = -146.407 + 841.880 * eq - 1629.014 * eosq + 1083.435 * eoc
        g520 = -532.114 + 3017.977 * eq - 5740.0 * eosq + 3708.276 * eoc
    else:
        g211 = -72.099 + 331.819 * eq - 508.738 * eosq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * eq - 2415.925 * eosq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * eq - 2366.899 * eosq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * eq - 7193.992 * eosq + 3651.957 * eoc
        g422 = -3581.69 + 16178.11 * eq - 24462.77 * eosq + 12422.52 * eoc
        if eq <= 0.715:
            g520 = 1464.74 - 4664.75 * eq + 3763.64 * eosq
        else:
            g520 = -5149.66 + 29936.92 * eq - 54087.36 * eosq + 31324.56 * eoc

    if eq < 0.7:
        g533 = -919.2277 + 4988.61 * eq - 9064.77 * eosq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * eq - 8491.4146 * eosq + 5337.524 * eoc
        g532 = -853.666 + 4690.25 * eq - 8624.77 * eosq + 5341.4 * eoc
    else:
        g533 = -37995.78 + 161616.52 * eq - 229838.2 * eosq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * eq - 309468.16 * eosq + 146349.42 * eoc
        g532 = -40023.88 + 170470.89 * eq - 242699.48 * eosq + 115605.82 * eoc

    sini2 = sinio * sinio
    f220 = 0.75 * (1.0 + 2.0 * cosio + theta2)
    f221 = 1.5 * sini2
    f321 = 1.875 * sinio * (1.0 - 2.0 * cosio - 3.0 * theta2)
    f322 = -1.875 * sinio * (1.0 + 2.0 * cosio - 3.0 * theta2)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * sinio * (
        sini2 * (1.0 - 2.0 * cosio - 5.0 * theta2)
        + 0.33333333 * (-2.0 + 4.0 * cosio + 6.0 * theta2)
    )
    f523 = sinio * (
        4.92187512 * sini2 * (-2.0 - 4.0 * cosio + 10.0 * theta2)
        + 6.56250012 * (1.0 + 2.0 * cosio - 3.0 * theta2)
    )
    f542 = 29.53125 * sinio * (2.0 - 8.0 * cosio + theta2 * (-12.0 + 8.0 * cosio + 10.0 * theta2))
    f543 = 29.53125 * sinio * (-2.0 - 8.0 * cosio + theta2 * (12.0 + 8.0 * cosio - 10.0 * theta2))

    temp1 = 3.0 * xnq * xnq * aqnv * aqnv
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aqnv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    xlamo = el.xmo + el.xnodeo + el.xnodeo - thgr - thgr
    bfact = k.xmdot + k.xnodot + k.xnodot - THDT - THDT + ssl + ssh + ssh
    return ResonanceTerms(
        synchronous=False,
        xlamo=xlamo,
        xfact=bfact - xnq,
        d2201=d2201,
        d2211=d2211,
        d3210=d3210,
        d3222=d3222,
        d4410=d4410,
        d4422=d4422,
        d5220=d5220,
        d5232=d5232,
        d5421=d5421,
        d5433=d5433,
    )


def deep_space_init(el: OrbitalElements, k: DragCoefficients) -> DeepSpaceTerms:
    """Compute lunar/solar and resonance terms for a deep-space orbit."""
    thgr = greenwich_sidereal_at_epoch(el.epoch_jd)
    sinq = math.sin(el.xnodeo)
    cosq = math.cos(el.xnodeo)

    # Days since 1900 Jan 0.5
    day = el.epoch_jd - JD_1950_JAN_0 + 18261.5

    xnodce = 4.5236020 - 9.2422029e-4 * day
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    c = 4.7199672 + 0.22997150 * day
    gam = 5.8351514 + 0.0019443680 * day
    zmol = fmod2p(c - gam)
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = gam + ac_tan(zx, zy) - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)
    zmos = fmod2p(6.2565837 + 0.017201977 * day)

    solar = _body_terms(ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cosq, sinq, C1SS, ZNS, ZES, el, k)
    lunar = _body_terms(
        zcosgl,
        zsingl,
        zcosil,
        zsinil,
        zcoshl * cosq + zsinhl * sinq,
        sinq * zcoshl - cosq * zsinhl,
        C1L,
        ZNL,
        ZEL,
        el,
        k,
    )

    ssh_solar = solar.sh / k.sinio
    sse = solar.se + lunar.se
    ssi = solar.si + lunar.si
    ssl = solar.sl + lunar.sl
    ssg = (solar.sgh - k.cosio * ssh_solar) + (lunar.sgh - k.cosio / k.sinio * lunar.sh)
    ssh = ssh_solar + lunar.sh / k.sinio

    return DeepSpaceTerms(
        thgr=thgr,
        xnq=k.xnodp,
        xqncl=el.xincl,
        omegaq=el.omegao,
        zmos=zmos,
        zmol=zmol,
        sse=sse,
        ssi=ssi,
        ssl=ssl,
        ssg=ssg,
        ssh=ssh,
        solar=solar.periodics,
        lunar=lunar.periodics,
        resonance=_resonance_terms(el, k, thgr, ssl, ssg, ssh),
    )


class SecularState(NamedTuple):
    xll: float
    omgadf: float
    xnode: float
    em: float
    xinc: float
    xn: float


def _resonance_rates(res: ResonanceTerms, omegaq: float, omgdot: float, xli: float, atime: float):
    """First and second time derivatives of the mean motion during integration."""
    if res.synchronous:
        xndot = (
            res.del1 * math.sin(xli - 0.13130908)
            + res.del2 * math.sin(2.0 * (xli - 2.8843198))
            + res.del3 * math.sin(3.0 * (xli - 0.37448087))
        )
        xnddt = (
            res.del1 * math.cos(xli - 0.13130908)
            + 2.0 * res.del2 * math.cos(2.0 * (xli - 2.8843198))
            + 3.0 * res.del3 * math.cos(3.0 * (xli - 0.37448087))
        )
        return xndot, xnddt

    xomi = omegaq + omgdot * atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndot = (
        res.d2201 * math.sin(x2omi + xli - G22)
        + res.d2211 * math.sin(xli - G22)
        + res.d3210 * math.sin(xomi + xli - G32)
        + res.d3222 * math.sin(-xomi + xli - G32)
        + res.d4410 * math.sin(x2omi + x2li - G44)
        + res.d4422 * math.sin(x2li - G44)
        + res.d5220 * math.sin(xomi + xli - G52)
        + res.d5232 * math.sin(-xomi + xli - G52)
        + res.d5421 * math.sin(xomi + x2li - G54)
        + res.d5433 * math.sin(-xomi + x2li - G54)
    )
    xnddt = (
        res.d2201 * math.cos(x2omi + xli - G22)
        + res.d2211 * math.cos(xli - G22)
        + res.d3210 * math.cos(xomi + xli - G32)
        + res.d3222 * math.cos(-xomi + xli - G32)
        + res.d5220 * math.cos(xomi + xli - G52)
        + res.d5232 * math.cos(-xomi + xli - G52)
        + 2.0
        * (
            res.d4410 * math.cos(x2omi + x2li - G44)
            + res.d4422 * math.cos(x2li - G44)
            + res.d5421 * math.cos(xomi + x2li - G54)
            + res.d5433 * math.cos(-xomi + x2li - G54)
        )
    )
    return xndot, xnddt


def deep_space_secular(
    terms: DeepSpaceTerms,
    el: OrbitalElements,
    omgdot: float,
    xll: float,
    omgadf: float,
    xnode: float,
    xn: float,
    t: float,
) -> SecularState:
    """Apply lunar/solar secular rates and integrate resonance effects to time ``t``."""
    xll = xll + terms.ssl * t
    omgadf = omgadf + terms.ssg * t
    xnode = xnode + terms.ssh * t
    em = el.eo + terms.sse * t
    xinc = el.xincl + terms.ssi * t
    if xinc < 0.0:
        xinc = -xinc
        xnode = xnode + PI
        omgadf = omgadf - PI

    res = terms.resonance
    if res is None:
        return SecularState(xll, omgadf, xnode, em, xinc, xn)

    delt = RESONANCE_STEP if t >= 0.0 else -RESONANCE_STEP
    atime = 0.0
    xni = terms.xnq
    xli = res.xlamo
    while True:
        xndot, xnddt = _resonance_rates(res, terms.omegaq, omgdot, xli, atime)
        xldot = xni + res.xfact
        xnddt = xnddt * xldot
        if abs(t - atime) < RESONANCE_STEP:
            break
        xli = xli + xldot * delt + xndot * RESONANCE_STEP2
        xni = xni + xndot * delt + xnddt * RESONANCE_STEP2
        atime = atime + delt

    ft = t - atime
    xn = xni + xndot * ft + xnddt * ft * ft * 0.5
    xl = xli + xldot * ft + xndot * ft * ft * 0.5
    temp = -xnode + terms.thgr + t * THDT
    if res.synchronous:
        xll = xl - omgadf + temp
    else:
        xll = xl + temp + temp
    return SecularState(xll, omgadf, xnode, em, xinc, xn)


def _periodic_sums(p: LuniSolarPeriodics, zm: float, ze: float):
    zf = zm + 2.0 * ze * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    return (
        p.e2 * f2 + p.e3 * f3,
        p.i2 * f2 + p.i3 * f3,
        p.l2 * f2 + p.l3 * f3 + p.l4 * sinzf,
        p.gh2 * f2 + p.gh3 * f3 + p.gh4 * sinzf,
        p.h2 * f2 + p.h3 * f3,
    )


def deep_space_periodics(
    terms: DeepSpaceTerms,
    k: DragCoefficients,
    em: float,
    xinc: float,
    omgadf: float,
    xnode: float,
    xll: float,
    t: float,
):
    """
    Add lunar/solar periodic perturbations.

    Returns:
        Tuple (em, xinc, omgadf, xnode, xll) of perturbed elements
    """
    sinis = math.sin(xinc)
    cosis = math.cos(xinc)

    ses, sis, sls, sghs, shs = _periodic_sums(terms.solar, terms.zmos + ZNS * t, ZES)
    sel, sil, sll, sghl, sh1 = _periodic_sums(terms.lunar, terms.zmol + ZNL * t, ZEL)
    pe = ses + sel
    pinc = sis + sil
    pl = sls + sll
    pgh = sghs + sghl
    ph = shs + sh1

    xinc = xinc + pinc
    em = em + pe

    if terms.xqncl >= LYDDANE_INCLINATION:
        ph = ph / k.sinio
        pgh = pgh - k.cosio * ph
        return em, xinc, omgadf + pgh, xnode + ph, xll + pl

    # Lyddane modification for low inclinations
    sinok = math.sin(xnode)
    cosok = math.cos(xnode)
    alfdp = sinis * sinok + ph * cosok + pinc * cosis * sinok
    betdp = sinis * cosok - ph * sinok + pinc * cosis * cosok
    xnode = fmod2p(xnode)
    xls = xll + omgadf + cosis * xnode + pl + pgh - pinc * xnode * sinis
    xnoh = xnode
    xnode = ac_tan(alfdp, betdp)
    if abs(xnoh - xnode) > PI:
        if xnode < xnoh:
            xnode += TWOPI
        else:
            xnode -= TWOPI
    xll = xll + pl
    omgadf = xls - xll - math.cos(xinc) * xnode
    return em, xinc, omgadf, xnode, xll


class DeepSpaceModel:
    """SDP4 propagator for one set of elements."""

    def __init__(self, elements: OrbitalElements) -> None:
        self.elements = elements
        self.coeffs = recover_mean_elements(elements)
        self.terms = deep_space_init(elements, self.coeffs)

    @property
    def resonant(self) -> bool:
        return self.terms.resonance is not None

    def propagate(self, tsince: float) -> ModelState:
        """State at ``tsince`` minutes after epoch."""
        el = self.elements
        k = self.coeffs

        xmdf = el.xmo + k.xmdot * tsince
        omgadf = el.omegao + k.omgdot * tsince
        xnoddf = el.xnodeo + k.xnodot * tsince
        tsq = tsince * tsince
        xnode = xnoddf + k.xnodcf * tsq
        tempa = 1.0 - k.c1 * tsince
        tempe = el.bstar * k.c4 * tsince
        templ = k.t2cof * tsq

        sec = deep_space_secular(self.terms, el, k.omgdot, xmdf, omgadf, xnode, k.xnodp, tsince)

        a = (XKE / sec.xn) ** TOTHRD * tempa * tempa
        em = sec.em - tempe
        xmam = sec.xll + k.xnodp * templ

        em, xinc, omgadf, xnode, xll = deep_space_periodics(
            self.terms, k, em, sec.xinc, sec.omgadf, sec.xnode, xmam, tsince
        )
        em = min(max(em, 1.0e-6), 0.999999)

        xl = xll + omgadf + xnode
        xn = XKE / a ** 1.5
        return short_period_state(a, em, omgadf, xl, xnode, xinc, xn, k, omgadf)
