"""SGP4/SDP4 analytic orbit propagation.

Implements the propagation theory of Spacetrack Report #3 as revised by
Vallado et al. (AIAA 2006-6753): secular J2/J4 drift, B* drag decay,
long- and short-period periodics, and for periods of 225 minutes or more
the lunar-solar and resonance terms in ``deep_space``.

Output is position [km] and velocity [km/s] in the TEME frame of the
element epoch.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Optional

from orbitsim.dynamics.constants import EarthConstants, WGS72
from orbitsim.dynamics.deep_space import DeepSpaceTerms, init_deep_space
from orbitsim.dynamics.elements import MeanElementSet
from orbitsim.dynamics.state import Frame, StateVector
from orbitsim.dynamics.time_system import Epoch, gstime
from orbitsim.errors import PropagationError, PropagationErrorKind

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
X2O3 = 2.0 / 3.0
TEMP4 = 1.5e-12
DEEP_SPACE_PERIOD_MIN = 225.0  # [min]
JD_1950 = 2433281.5  # Julian date of 1950 Jan 0.0
KEPLER_TOLERANCE = 1.0e-12
KEPLER_ACCEPT = 1.0e-10


class PropagatorBranch(str, Enum):
    """Which variant of the theory an element set uses."""

    NEAR_EARTH = "near_earth"  # SGP4
    DEEP_SPACE = "deep_space"  # SDP4


@dataclass(frozen=True)
class _Coefficients:
    """Epoch-dependent quantities computed once by initialization."""
    no_unkozai: float
    con41: float
    x1mth2: float
    x7thm1: float
    cc1: float
    cc4: float
    cc5: float
    d2: float
    d3: float
    d4: float
    delmo: float
    eta: float
    sinmao: float
    argpdot: float
    mdot: float
    nodedot: float
    nodecf: float
    omgcof: float
    xmcof: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    xlcof: float
    aycof: float
    isimp: bool
    gsto: float


def _initialize(
    elements: MeanElementSet, constants: EarthConstants, opsmode: str
) -> tuple[_Coefficients, Optional[DeepSpaceTerms]]:
    """Run SGP4 initialization for an element set."""
    radius = constants.radius_km
    xke = constants.xke
    j2 = constants.j2
    j4 = constants.j4
    j3oj2 = constants.j3oj2

    ecco = elements.eccentricity
    inclo = elements.inclination
    argpo = elements.arg_perigee
    mo = elements.mean_anomaly
    nodeo = elements.raan
    bstar = elements.bstar
    epoch = (elements.epoch.jd - JD_1950) + elements.epoch.fraction

    ss = 78.0 / radius + 1.0
    qzms2t = ((120.0 - 78.0) / radius) ** 4

    # Un-Kozai the mean motion
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(inclo)
    cosio2 = cosio * cosio
    ak = (xke / elements.mean_motion) ** X2O3
    d1 = 0.75 * j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    del_ = d1 / (ak * ak)
    adel = ak * (1.0 - del_ * del_ - del_ * (1.0 / 3.0 + 134.0 * del_ * del_ / 81.0))
    del_ = d1 / (adel * adel)
    no_unkozai = elements.mean_motion / (1.0 + del_)

    ao = (xke / no_unkozai) ** X2O3
    sinio = math.sin(inclo)
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)

    if opsmode == "a":
        ts70 = epoch - 7305.0
        ds70 = math.floor(ts70 + 1.0e-8)
        tfrac = ts70 - ds70
        c1 = 1.72027916940703639e-2
        thgr70 = 1.7321343856509374
        fk5r = 5.07551419432269442e-15
        gsto = math.fmod(thgr70 + c1 * ds70 + (c1 + TWO_PI) * tfrac + ts70 * ts70 * fk5r, TWO_PI)
        if gsto < 0.0:
            gsto += TWO_PI
    else:
        gsto = gstime(epoch + JD_1950)

    isimp = rp < 220.0 / radius + 1.0
    sfour = ss
    qzms24 = qzms2t
    perige = (rp - 1.0) * radius

    # Perigees below 156 km alter s and qoms2t
    if perige < 156.0:
        sfour = perige - 78.0
        if perige < 98.0:
            sfour = 20.0
        qzms24 = ((120.0 - sfour) / radius) ** 4
        sfour = sfour / radius + 1.0

    pinvsq = 1.0 / posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * tsi**4
    coef1 = coef / psisq**3.5
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
        eta * (2.0 + 0.5 * etasq)
        + ecco * (0.5 + 2.0 * etasq)
        - j2 * tsi / (ao * psisq) * (
            -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * argpo)
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)
    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no_unkozai
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * j4 * pinvsq * pinvsq * no_unkozai
    mdot = (
        no_unkozai
        + 0.5 * temp1 * rteosq * con41
        + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4)
    )
    argpdot = (
        -0.5 * temp1 * con42
        + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
        + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4)
    )
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (
        0.5 * temp2 * (4.0 - 19.0 * cosio2) + 2.0 * temp3 * (3.0 - 7.0 * cosio2)
    ) * cosio
    omgcof = bstar * cc3 * math.cos(argpo)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -X2O3 * coef * bstar / eeta
    nodecf = 3.5 * omeosq * xhdot1 * cc1
    t2cof = 1.5 * cc1
    # Guard the divide at 180 deg inclination
    if abs(cosio + 1.0) > 1.5e-12:
        xlcof = -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / (1.0 + cosio)
    else:
        xlcof = -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / TEMP4
    aycof = -0.5 * j3oj2 * sinio
    delmo = (1.0 + eta * math.cos(mo)) ** 3
    sinmao = math.sin(mo)
    x7thm1 = 7.0 * cosio2 - 1.0

    deep = None
    if TWO_PI / no_unkozai >= DEEP_SPACE_PERIOD_MIN:
        isimp = True
        deep = init_deep_space(
            epoch=epoch,
            ecco=ecco,
            argpo=argpo,
            inclo=inclo,
            nodeo=nodeo,
            mo=mo,
            no_unkozai=no_unkozai,
            mdot=mdot,
            nodedot=nodedot,
            argpdot=argpdot,
            gsto=gsto,
            xke=xke,
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
        t5cof = 0.2 * (
            3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2 + 15.0 * cc1sq * (2.0 * d2 + cc1sq)
        )

    coefficients = _Coefficients(
        no_unkozai=no_unkozai,
        con41=con41,
        x1mth2=x1mth2,
        x7thm1=x7thm1,
        cc1=cc1,
        cc4=cc4,
        cc5=cc5,
        d2=d2,
        d3=d3,
        d4=d4,
        delmo=delmo,
        eta=eta,
        sinmao=sinmao,
        argpdot=argpdot,
        mdot=mdot,
        nodedot=nodedot,
        nodecf=nodecf,
        omgcof=omgcof,
        xmcof=xmcof,
        t2cof=t2cof,
        t3cof=t3cof,
        t4cof=t4cof,
        t5cof=t5cof,
        xlcof=xlcof,
        aycof=aycof,
        isimp=isimp,
        gsto=gsto,
    )
    return coefficients, deep


class _Branch:
    """Shared propagation steps; subclasses supply the secular stage."""

    def __init__(
        self,
        elements: MeanElementSet,
        constants: EarthConstants,
        coefficients: _Coefficients,
        opsmode: str,
        kepler_max_iterations: int,
    ):
        self._elements = elements
        self._constants = constants
        self._c = coefficients
        self._opsmode = opsmode
        self._kepler_max_iterations = kepler_max_iterations

    def _decayed(self, tsince: float, reason: str) -> PropagationError:
        return PropagationError(
            PropagationErrorKind.DECAYED,
            f"{reason} at {tsince:.3f} min from epoch",
            tsince_minutes=tsince,
        )

    def _secular(self, t: float) -> tuple:
        """Secular gravity and drag update.

        Returns:
            (em, argpm, inclm, mm, nodem, nm, tempa, (tempe, templ))
        """
        raise NotImplementedError

    def _periodics(
        self, t: float, ep: float, xincp: float, nodep: float, argpp: float, mp: float
    ) -> tuple[float, float, float, float, float, float, float, float, float, float]:
        """Long-period coefficients for the perturbed elements.

        Returns:
            (ep, xincp, nodep, argpp, mp, aycof, xlcof, con41, x1mth2, x7thm1)
        """
        c = self._c
        return ep, xincp, nodep, argpp, mp, c.aycof, c.xlcof, c.con41, c.x1mth2, c.x7thm1

    def propagate(self, tsince: float) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """Propagate to ``tsince`` minutes from epoch.

        Returns:
            (position [km], velocity [km/s]) in TEME

        Raises:
            PropagationError: DECAYED or KEPLER_NON_CONVERGENCE
        """
        c = self._c
        radius = self._constants.radius_km
        xke = self._constants.xke
        j2 = self._constants.j2
        vkmpersec = radius * xke / 60.0

        em, argpm, inclm, mm, nodem, nm, tempa, (tempe, templ) = self._secular(tsince)

        if nm <= 0.0:
            raise self._decayed(tsince, f"mean motion {nm:f} is not positive")

        am = (xke / nm) ** X2O3 * tempa * tempa
        nm = xke / am**1.5
        em = em - tempe

        if em >= 1.0 or em < -0.001:
            raise self._decayed(tsince, f"mean eccentricity {em:f} outside [0, 1)")

        if em < 1.0e-6:
            em = 1.0e-6
        mm = mm + c.no_unkozai * templ
        xlm = mm + argpm + nodem

        nodem = math.fmod(nodem, TWO_PI)
        argpm = math.fmod(argpm, TWO_PI)
        xlm = math.fmod(xlm, TWO_PI)
        mm = math.fmod(xlm - argpm - nodem, TWO_PI)

        ep, xincp, nodep, argpp, mp, aycof, xlcof, con41, x1mth2, x7thm1 = self._periodics(
            tsince, em, inclm, nodem, argpm, mm
        )
        sinip = math.sin(xincp)
        cosip = math.cos(xincp)

        # Long-period periodics
        axnl = ep * math.cos(argpp)
        temp = 1.0 / (am * (1.0 - ep * ep))
        aynl = ep * math.sin(argpp) + temp * aycof
        xl = mp + argpp + nodep + temp * xlcof * axnl

        # Kepler's equation in equinoctial form, corrections clamped at 0.95
        u = math.fmod(xl - nodep, TWO_PI)
        eo1 = u
        tem5 = 9999.9
        ktr = 1
        sineo1 = coseo1 = 0.0
        while abs(tem5) >= KEPLER_TOLERANCE and ktr <= self._kepler_max_iterations:
            sineo1 = math.sin(eo1)
            coseo1 = math.cos(eo1)
            tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
            tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
            if abs(tem5) >= 0.95:
                tem5 = 0.95 if tem5 > 0.0 else -0.95
            eo1 = eo1 + tem5
            ktr += 1
        if abs(tem5) > KEPLER_ACCEPT:
            raise PropagationError(
                PropagationErrorKind.KEPLER_NON_CONVERGENCE,
                f"Kepler solve did not converge in {self._kepler_max_iterations} "
                f"iterations at {tsince:.3f} min (last correction {tem5:.3e} rad)",
                tsince_minutes=tsince,
            )

        # Short-period preliminary quantities
        ecose = axnl * coseo1 + aynl * sineo1
        esine = axnl * sineo1 - aynl * coseo1
        el2 = axnl * axnl + aynl * aynl
        pl = am * (1.0 - el2)
        if pl < 0.0:
            raise self._decayed(tsince, f"semi-latus rectum {pl:f} is negative")

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

        # Short-period periodics
        mrt = rl * (1.0 - 1.5 * temp2 * betal * con41) + 0.5 * temp1 * x1mth2 * cos2u
        su = su - 0.25 * temp2 * x7thm1 * sin2u
        xnode = nodep + 1.5 * temp2 * cosip * sin2u
        xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
        mvt = rdotl - nm * temp1 * x1mth2 * sin2u / xke
        rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / xke

        if mrt < 1.0:
            raise self._decayed(
                tsince, f"radius {mrt * radius:.3f} km is below the Earth's surface"
            )

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

        mr = mrt * radius
        position = (mr * ux, mr * uy, mr * uz)
        velocity = (
            (mvt * ux + rvdot * vx) * vkmpersec,
            (mvt * uy + rvdot * vy) * vkmpersec,
            (mvt * uz + rvdot * vz) * vkmpersec,
        )
        return position, velocity


class NearEarthBranch(_Branch):
    """SGP4 for periods under 225 minutes."""

    def _secular(self, t):
        c = self._c
        el = self._elements
        xmdf = el.mean_anomaly + c.mdot * t
        argpdf = el.arg_perigee + c.argpdot * t
        nodedf = el.raan + c.nodedot * t
        argpm = argpdf
        mm = xmdf
        t2 = t * t
        nodem = nodedf + c.nodecf * t2
        tempa = 1.0 - c.cc1 * t
        tempe = el.bstar * c.cc4 * t
        templ = c.t2cof * t2

        if not c.isimp:
            delomg = c.omgcof * t
            delm = c.xmcof * ((1.0 + c.eta * math.cos(xmdf)) ** 3 - c.delmo)
            temp = delomg + delm
            mm = xmdf + temp
            argpm = argpdf - temp
            t3 = t2 * t
            t4 = t3 * t
            tempa = tempa - c.d2 * t2 - c.d3 * t3 - c.d4 * t4
            tempe = tempe + el.bstar * c.cc5 * (math.sin(mm) - c.sinmao)
            templ = templ + c.t3cof * t3 + t4 * (c.t4cof + t * c.t5cof)

        return (
            el.eccentricity,
            argpm,
            el.inclination,
            mm,
            nodem,
            c.no_unkozai,
            tempa,
            (tempe, templ),
        )


class DeepSpaceBranch(NearEarthBranch):
    """SDP4: near-earth secular terms plus lunar-solar and resonance effects."""

    def __init__(self, *args, deep: DeepSpaceTerms, **kwargs):
        super().__init__(*args, **kwargs)
        self._deep = deep

    def _secular(self, t):
        em, argpm, inclm, mm, nodem, _, tempa, extra = super()._secular(t)
        em, argpm, inclm, mm, nodem, nm = self._deep.secular(t, em, argpm, inclm, mm, nodem)
        return em, argpm, inclm, mm, nodem, nm, tempa, extra

    def _periodics(self, t, ep, xincp, nodep, argpp, mp):
        ep, xincp, nodep, argpp, mp = self._deep.periodics.apply(
            t, ep, xincp, nodep, argpp, mp, self._opsmode
        )
        if xincp < 0.0:
            xincp = -xincp
            nodep = nodep + math.pi
            argpp = argpp - math.pi
        if ep < 0.0 or ep > 1.0:
            raise self._decayed(t, f"perturbed eccentricity {ep:f} outside [0, 1]")

        j3oj2 = self._constants.j3oj2
        sinip = math.sin(xincp)
        cosip = math.cos(xincp)
        aycof = -0.5 * j3oj2 * sinip
        if abs(cosip + 1.0) > 1.5e-12:
            xlcof = -0.25 * j3oj2 * sinip * (3.0 + 5.0 * cosip) / (1.0 + cosip)
        else:
            xlcof = -0.25 * j3oj2 * sinip * (3.0 + 5.0 * cosip) / TEMP4
        cosisq = cosip * cosip
        con41 = 3.0 * cosisq - 1.0
        x1mth2 = 1.0 - cosisq
        x7thm1 = 7.0 * cosisq - 1.0
        return ep, xincp, nodep, argpp, mp, aycof, xlcof, con41, x1mth2, x7thm1


class Sgp4Propagator:
    """Propagates one mean element set.

    The near-earth or deep-space branch is selected once from the
    un-Kozai'd period and used for every call. ``propagate`` has no side
    effects, so one instance may be shared between threads.
    """

    def __init__(
        self,
        elements: MeanElementSet,
        constants: EarthConstants = WGS72,
        opsmode: str = "i",
        kepler_max_iterations: int = 10,
    ):
        """Initialize propagator.

        Args:
            elements: Mean elements to propagate
            constants: Gravity model (WGS72 is the SGP4 standard)
            opsmode: "i" for improved mode, "a" for AFSPC compatibility
            kepler_max_iterations: Newton iteration cap for Kepler's equation

        Raises:
            ValueError: If opsmode or the iteration cap is invalid
        """
        if opsmode not in ("a", "i"):
            raise ValueError(f"opsmode must be 'a' or 'i', got {opsmode!r}")
        if kepler_max_iterations < 1:
            raise ValueError("kepler_max_iterations must be at least 1")

        self._elements = elements
        self._constants = constants
        coefficients, deep = _initialize(elements, constants, opsmode)
        args = (elements, constants, coefficients, opsmode, kepler_max_iterations)
        if deep is None:
            self._branch = PropagatorBranch.NEAR_EARTH
            self._impl: _Branch = NearEarthBranch(*args)
        else:
            self._branch = PropagatorBranch.DEEP_SPACE
            self._impl = DeepSpaceBranch(*args, deep=deep)
        self._gsto = coefficients.gsto
        logger.debug(
            "Initialized %s propagator for %s (period %.2f min)",
            self._branch.value,
            elements.satnum or "unnamed satellite",
            TWO_PI / coefficients.no_unkozai,
        )

    @property
    def elements(self) -> MeanElementSet:
        return self._elements

    @property
    def constants(self) -> EarthConstants:
        return self._constants

    @property
    def branch(self) -> PropagatorBranch:
        """Branch chosen at construction."""
        return self._branch

    @property
    def gsto(self) -> float:
        """Greenwich sidereal time at the element epoch [rad]."""
        return self._gsto

    def propagate(self, delta_minutes: float) -> StateVector:
        """Propagate to an offset from the element epoch.

        Args:
            delta_minutes: Minutes after (or before, if negative) the epoch

        Returns:
            StateVector in TEME tagged with the propagated epoch

        Raises:
            PropagationError: DECAYED or KEPLER_NON_CONVERGENCE
        """
        position, velocity = self._impl.propagate(delta_minutes)
        return StateVector(
            frame=Frame.TEME,
            position=position,
            velocity=velocity,
            epoch=self._elements.epoch.plus_minutes(delta_minutes),
        )

    def propagate_to(self, epoch: Epoch) -> StateVector:
        """Propagate to an absolute epoch."""
        return self.propagate(epoch.seconds_since(self._elements.epoch) / 60.0)
