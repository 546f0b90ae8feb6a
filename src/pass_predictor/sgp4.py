"""
SGP4 near-earth analytic propagator.

Implements the model of Spacetrack Report #3 (Hoots & Roehrich, 1980) for
orbits with periods below 225 minutes. All initialization quantities are
computed once in the constructor; :meth:`NearEarthModel.propagate` is a
pure function of the elapsed time.

Units: positions in earth radii, velocities in earth radii per minute,
time in minutes since epoch.
"""

import logging
import math
from typing import NamedTuple

from .constants import (
    AE,
    CK2,
    CK4,
    E6A,
    QOMS2T,
    S_PARAM,
    TOTHRD,
    TWOPI,
    XJ3,
    XKE,
    XKMPER,
)
from .elements import OrbitalElements
from .vector_math import Vector3, ac_tan, fmod2p

logger = logging.getLogger(__name__)

# Newton iteration cap for Kepler's equation
KEPLER_MAX_ITERATIONS = 10

# Largest Newton correction to the eccentric anomaly per iteration, radians.
# Unlimited steps overshoot and fail to converge for e near 1.
KEPLER_MAX_STEP = 0.95

# Below this eccentricity the drag terms divided by e are dropped
SMALL_ECCENTRICITY = 1.0e-4


class ModelState(NamedTuple):
    """Raw propagator output in normalized units."""

    position: Vector3
    velocity: Vector3
    phase: float  # radians, [0, 2*pi)


class DragCoefficients(NamedTuple):
    """Recovered mean elements and drag/gravity coefficients shared by SGP4 and SDP4."""

    aodp: float
    xnodp: float
    cosio: float
    sinio: float
    theta2: float
    x3thm1: float
    x1mth2: float
    x7thm1: float
    eosq: float
    betao: float
    betao2: float
    s4: float
    qoms24: float
    tsi: float
    eta: float
    etasq: float
    eeta: float
    coef: float
    coef1: float
    c1: float
    c4: float
    xmdot: float
    omgdot: float
    xnodot: float
    xnodcf: float
    t2cof: float
    xlcof: float
    aycof: float
    a3ovk2: float


def recover_mean_elements(el: OrbitalElements) -> DragCoefficients:
    """
    Un-Kozai the mean motion and compute secular and drag coefficients.

    This is the initialization common to both models.
    """
    a1 = (XKE / el.xno) ** TOTHRD
    cosio = math.cos(el.xincl)
    sinio = math.sin(el.xincl)
    theta2 = cosio * cosio
    x3thm1 = 3.0 * theta2 - 1.0
    eosq = el.eo * el.eo
    betao2 = 1.0 - eosq
    betao = math.sqrt(betao2)
    del1 = 1.5 * CK2 * x3thm1 / (a1 * a1 * betao * betao2)
    ao = a1 * (1.0 - del1 * (0.5 * TOTHRD + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = 1.5 * CK2 * x3thm1 / (ao * ao * betao * betao2)
    xnodp = el.xno / (1.0 + delo)
    aodp = ao / (1.0 - delo)

    # Perigee below 156 km alters s and qoms2t
    s4 = S_PARAM
    qoms24 = QOMS2T
    perigee = (aodp * (1.0 - el.eo) - AE) * XKMPER
    if perigee < 156.0:
        s4 = 20.0 if perigee <= 98.0 else perigee - 78.0
        qoms24 = ((120.0 - s4) * AE / XKMPER) ** 4
        s4 = s4 / XKMPER + AE

    pinvsq = 1.0 / (aodp * aodp * betao2 * betao2)
    tsi = 1.0 / (aodp - s4)
    eta = aodp * el.eo * tsi
    etasq = eta * eta
    eeta = el.eo * eta
    psisq = abs(1.0 - etasq)
    coef = qoms24 * tsi ** 4
    coef1 = coef / psisq ** 3.5
    c2 = coef1 * xnodp * (
        aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.75 * CK2 * tsi / psisq * x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    c1 = el.bstar * c2
    a3ovk2 = -XJ3 / CK2 * AE ** 3
    x1mth2 = 1.0 - theta2
    c4 = (
        2.0 * xnodp * coef1 * aodp * betao2
        * (
            eta * (2.0 + 0.5 * etasq)
            + el.eo * (0.5 + 2.0 * etasq)
            - 2.0 * CK2 * tsi / (aodp * psisq)
            * (
                -3.0 * x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * el.omegao)
            )
        )
    )
    theta4 = theta2 * theta2
    temp1 = 3.0 * CK2 * pinvsq * xnodp
    temp2 = temp1 * CK2 * pinvsq
    temp3 = 1.25 * CK4 * pinvsq * pinvsq * xnodp
    xmdot = (
        xnodp
        + 0.5 * temp1 * betao * x3thm1
        + 0.0625 * temp2 * betao * (13.0 - 78.0 * theta2 + 137.0 * theta4)
    )
    x1m5th = 1.0 - 5.0 * theta2
    omgdot = (
        -0.5 * temp1 * x1m5th
        + 0.0625 * temp2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
        + temp3 * (3.0 - 36.0 * theta2 + 49.0 * theta4)
    )
    xhdot1 = -temp1 * cosio
    xnodot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * theta2) + 2.0 * temp3 * (3.0 - 7.0 * theta2)) * cosio

    return DragCoefficients(
        aodp=aodp,
        xnodp=xnodp,
        cosio=cosio,
        sinio=sinio,
        theta2=theta2,
        x3thm1=x3thm1,
        x1mth2=x1mth2,
        x7thm1=7.0 * theta2 - 1.0,
        eosq=eosq,
        betao=betao,
        betao2=betao2,
        s4=s4,
        qoms24=qoms24,
        tsi=tsi,
        eta=eta,
        etasq=etasq,
        eeta=eeta,
        coef=coef,
        coef1=coef1,
        c1=c1,
        c4=c4,
        xmdot=xmdot,
        omgdot=omgdot,
        xnodot=xnodot,
        xnodcf=3.5 * betao2 * xhdot1 * c1,
        t2cof=1.5 * c1,
        xlcof=0.125 * a3ovk2 * sinio * (3.0 + 5.0 * cosio) / (1.0 + cosio),
        aycof=0.25 * a3ovk2 * sinio,
        a3ovk2=a3ovk2,
    )


def short_period_state(
    a: float,
    e: float,
    omega: float,
    xl: float,
    xnode: float,
    xinc: float,
    xn: float,
    coeffs: DragCoefficients,
    omgadf: float,
) -> ModelState:
    """
    Add long-period terms, solve Kepler's equation, apply short-period
    corrections and build the position/velocity vectors.

    ``xinc`` is the (possibly perturbed) inclination used for orientation;
    the short-period coefficients use the epoch inclination as in the
    published model. ``omgadf`` is the secular argument of perigee
    used for the orbital phase.
    """
    beta = math.sqrt(1.0 - e * e)

    # Long period periodics
    axn = e * math.cos(omega)
    temp = 1.0 / (a * beta * beta)
    xll = temp * coeffs.xlcof * axn
    aynl = temp * coeffs.aycof
    xlt = xl + xll
    ayn = e * math.sin(omega) + aynl

    # Kepler's equation
    capu = fmod2p(xlt - xnode)
    temp2 = capu
    sinepw = cosepw = temp3 = temp4 = temp5 = temp6 = step = 0.0
    for _ in range(KEPLER_MAX_ITERATIONS):
        sinepw = math.sin(temp2)
        cosepw = math.cos(temp2)
        temp3 = axn * sinepw
        temp4 = ayn * cosepw
        temp5 = axn * cosepw
        temp6 = ayn * sinepw
        step = (capu - temp4 + temp3 - temp2) / (1.0 - temp5 - temp6)
        step = max(-KEPLER_MAX_STEP, min(KEPLER_MAX_STEP, step))
        if abs(step) <= E6A:
            break
        temp2 += step
    else:
        logger.warning(
            f"Kepler's equation not converged after {KEPLER_MAX_ITERATIONS} iterations "
            f"(e={math.sqrt(axn * axn + ayn * ayn):.6f}, last step {step:.2e} rad)"
        )

    # Short period preliminary quantities
    ecose = temp5 + temp6
    esine = temp3 - temp4
    elsq = axn * axn + ayn * ayn
    temp = 1.0 - elsq
    pl = a * temp
    r = a * (1.0 - ecose)
    temp1 = 1.0 / r
    rdot = XKE * math.sqrt(a) * esine * temp1
    rfdot = XKE * math.sqrt(pl) * temp1
    temp2 = a * temp1
    betal = math.sqrt(temp)
    temp3 = 1.0 / (1.0 + betal)
    cosu = temp2 * (cosepw - axn + ayn * esine * temp3)
    sinu = temp2 * (sinepw - ayn - axn * esine * temp3)
    u = ac_tan(sinu, cosu)
    sin2u = 2.0 * sinu * cosu
    cos2u = 2.0 * cosu * cosu - 1.0
    temp = 1.0 / pl
    temp1 = CK2 * temp
    temp2 = temp1 * temp

    # Short periodics
    rk = r * (1.0 - 1.5 * temp2 * betal * coeffs.x3thm1) + 0.5 * temp1 * coeffs.x1mth2 * cos2u
    uk = u - 0.25 * temp2 * coeffs.x7thm1 * sin2u
    xnodek = xnode + 1.5 * temp2 * coeffs.cosio * sin2u
    xinck = xinc + 1.5 * temp2 * coeffs.cosio * coeffs.sinio * cos2u
    rdotk = rdot - xn * temp1 * coeffs.x1mth2 * sin2u
    rfdotk = rfdot + xn * temp1 * (coeffs.x1mth2 * cos2u + 1.5 * coeffs.x3thm1)

    # Orientation vectors
    sinuk = math.sin(uk)
    cosuk = math.cos(uk)
    sinik = math.sin(xinck)
    cosik = math.cos(xinck)
    sinnok = math.sin(xnodek)
    cosnok = math.cos(xnodek)
    xmx = -sinnok * cosik
    xmy = cosnok * cosik
    ux = xmx * sinuk + cosnok * cosuk
    uy = xmy * sinuk + sinnok * cosuk
    uz = sinik * sinuk
    vx = xmx * cosuk - cosnok * sinuk
    vy = xmy * cosuk - sinnok * sinuk
    vz = sinik * cosuk

    position = Vector3(rk * ux, rk * uy, rk * uz)
    velocity = Vector3(
        rdotk * ux + rfdotk * vx,
        rdotk * uy + rfdotk * vy,
        rdotk * uz + rfdotk * vz,
    )
    phase = fmod2p(xlt - xnode - omgadf + TWOPI)
    return ModelState(position, velocity, phase)


class NearEarthModel:
    """SGP4 propagator for one set of elements."""

    def __init__(self, elements: OrbitalElements) -> None:
        self.elements = elements
        el = elements
        k = recover_mean_elements(el)
        self.coeffs = k

        # Perigee below 220 km truncates to linear sqrt(a) / quadratic M variation
        self.simple = (k.aodp * (1.0 - el.eo) / AE) < (220.0 / XKMPER + AE)

        if el.eo > SMALL_ECCENTRICITY:
            c3 = k.coef * k.tsi * k.a3ovk2 * k.xnodp * AE * k.sinio / el.eo
            self.xmcof = -TOTHRD * k.coef * el.bstar * AE / k.eeta
        else:
            c3 = 0.0
            self.xmcof = 0.0
        self.c5 = 2.0 * k.coef1 * k.aodp * k.betao2 * (1.0 + 2.75 * (k.etasq + k.eeta) + k.eeta * k.etasq)
        self.omgcof = el.bstar * c3 * math.cos(el.omegao)
        self.delmo = (1.0 + k.eta * math.cos(el.xmo)) ** 3
        self.sinmo = math.sin(el.xmo)

        self.d2 = self.d3 = self.d4 = 0.0
        self.t3cof = self.t4cof = self.t5cof = 0.0
        if not self.simple:
            c1sq = k.c1 * k.c1
            self.d2 = 4.0 * k.aodp * k.tsi * c1sq
            temp = self.d2 * k.tsi * k.c1 / 3.0
            self.d3 = (17.0 * k.aodp + k.s4) * temp
            self.d4 = 0.5 * temp * k.aodp * k.tsi * (221.0 * k.aodp + 31.0 * k.s4) * k.c1
            self.t3cof = self.d2 + 2.0 * c1sq
            self.t4cof = 0.25 * (3.0 * self.d3 + k.c1 * (12.0 * self.d2 + 10.0 * c1sq))
            self.t5cof = 0.2 * (
                3.0 * self.d4
                + 12.0 * k.c1 * self.d3
                + 6.0 * self.d2 * self.d2
                + 15.0 * c1sq * (2.0 * self.d2 + c1sq)
            )

    def propagate(self, tsince: float) -> ModelState:
        """State at ``tsince`` minutes after epoch."""
        el = self.elements
        k = self.coeffs

        # Secular gravity and atmospheric drag
        xmdf = el.xmo + k.xmdot * tsince
        omgadf = el.omegao + k.omgdot * tsince
        xnoddf = el.xnodeo + k.xnodot * tsince
        omega = omgadf
        xmp = xmdf
        tsq = tsince * tsince
        xnode = xnoddf + k.xnodcf * tsq
        tempa = 1.0 - k.c1 * tsince
        tempe = el.bstar * k.c4 * tsince
        templ = k.t2cof * tsq

        if not self.simple:
            delomg = self.omgcof * tsince
            delm = self.xmcof * ((1.0 + k.eta * math.cos(xmdf)) ** 3 - self.delmo)
            temp = delomg + delm
            xmp = xmdf + temp
            omega = omgadf - temp
            tcube = tsq * tsince
            tfour = tsince * tcube
            tempa = tempa - self.d2 * tsq - self.d3 * tcube - self.d4 * tfour
            tempe = tempe + el.bstar * self.c5 * (math.sin(xmp) - self.sinmo)
            templ = templ + self.t3cof * tcube + tfour * (self.t4cof + tsince * self.t5cof)

        a = k.aodp * tempa * tempa
        e = el.eo - tempe
        # Drag can drive e marginally negative for near-circular orbits
        e = min(max(e, 1.0e-6), 0.999999)
        xl = xmp + omega + xnode + k.xnodp * templ
        xn = XKE / a ** 1.5

        return short_period_state(a, e, omega, xl, xnode, el.xincl, xn, k, omgadf)
