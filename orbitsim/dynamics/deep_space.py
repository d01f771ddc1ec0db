"""Deep-space (SDP4) perturbations for orbits with periods of 225 min or more.

Lunar and solar secular rates and long-period periodics, plus the 12-hour
and 24-hour geopotential resonance integrator, following Vallado et al.,
"Revisiting Spacetrack Report #3" (AIAA 2006-6753).
"""

from dataclasses import dataclass
import math
from typing import Any

TWO_PI = 2.0 * math.pi
X2O3 = 2.0 / 3.0

# Lunar/solar constants
ZES = 0.01675
ZEL = 0.05490
ZNS = 1.19459e-5
ZNL = 1.5835218e-4
C1SS = 2.9864797e-6
C1L = 4.7968065e-7
ZSINIS = 0.39785416
ZCOSIS = 0.91744867
ZCOSGS = 0.1945905
ZSINGS = -0.98088458

# Earth rotation in rad/min (7.29211514668855e-5 rad/s)
RPTIM = 4.37526908801129966e-3

# Resonance integrator step [min]
STEP = 720.0
STEP2 = 259200.0


def _dscom(epoch: float, ep: float, argpp: float, inclp: float, nodep: float, np_: float) -> dict[str, Any]:
    """Lunar and solar geometry terms at epoch.

    Args:
        epoch: Days since 1950 Jan 0.0 UTC
        ep, argpp, inclp, nodep: Eccentricity and angles [rad]
        np_: Un-Kozai'd mean motion [rad/min]

    Returns:
        Dict of the solar (``ss*``, ``sz*``) and lunar (``s*``, ``z*``)
        coefficients plus the periodic amplitudes used by ``_dpper``.
    """
    snodm = math.sin(nodep)
    cnodm = math.cos(nodep)
    sinomm = math.sin(argpp)
    cosomm = math.cos(argpp)
    sinim = math.sin(inclp)
    cosim = math.cos(inclp)
    emsq = ep * ep
    betasq = 1.0 - emsq
    rtemsq = math.sqrt(betasq)

    day = epoch + 18261.5
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, TWO_PI)
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

    # First pass is the sun, second the moon
    zcosg, zsing = ZCOSGS, ZSINGS
    zcosi, zsini = ZCOSIS, ZSINIS
    zcosh, zsinh = cnodm, snodm
    cc = C1SS
    xnoi = 1.0 / np_

    passes = []
    for body in ("sun", "moon"):
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
        z12 = -6.0 * (a1 * a6 + a3 * a5) + emsq * (
            -24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)
        )
        z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
        z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
        z22 = 6.0 * (a4 * a5 + a2 * a6) + emsq * (
            24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)
        )
        z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
        z1 = z1 + z1 + betasq * z31
        z2 = z2 + z2 + betasq * z32
        z3 = z3 + z3 + betasq * z33
        s3 = cc * xnoi
        s2 = -0.5 * s3 / rtemsq
        s4 = s3 * rtemsq
        s1 = -15.0 * ep * s4
        s5 = x1 * x3 + x2 * x4
        s6 = x2 * x3 + x1 * x4
        s7 = x2 * x4 - x1 * x3

        passes.append({
            "s1": s1, "s2": s2, "s3": s3, "s4": s4, "s5": s5, "s6": s6, "s7": s7,
            "z1": z1, "z2": z2, "z3": z3,
            "z11": z11, "z12": z12, "z13": z13,
            "z21": z21, "z22": z22, "z23": z23,
            "z31": z31, "z32": z32, "z33": z33,
        })

        if body == "sun":
            zcosg, zsing = zcosgl, zsingl
            zcosi, zsini = zcosil, zsinil
            zcosh = zcoshl * cnodm + zsinhl * snodm
            zsinh = snodm * zcoshl - cnodm * zsinhl
            cc = C1L

    sun, moon = passes
    return {
        "sun": sun,
        "moon": moon,
        "sinim": sinim,
        "cosim": cosim,
        "emsq": emsq,
        "zmol": math.fmod(4.7199672 + 0.22997150 * day - gam, TWO_PI),
        "zmos": math.fmod(6.2565837 + 0.017201977 * day, TWO_PI),
        # Solar periodic amplitudes
        "se2": 2.0 * sun["s1"] * sun["s6"],
        "se3": 2.0 * sun["s1"] * sun["s7"],
        "si2": 2.0 * sun["s2"] * sun["z12"],
        "si3": 2.0 * sun["s2"] * (sun["z13"] - sun["z11"]),
        "sl2": -2.0 * sun["s3"] * sun["z2"],
        "sl3": -2.0 * sun["s3"] * (sun["z3"] - sun["z1"]),
        "sl4": -2.0 * sun["s3"] * (-21.0 - 9.0 * emsq) * ZES,
        "sgh2": 2.0 * sun["s4"] * sun["z32"],
        "sgh3": 2.0 * sun["s4"] * (sun["z33"] - sun["z31"]),
        "sgh4": -18.0 * sun["s4"] * ZES,
        "sh2": -2.0 * sun["s2"] * sun["z22"],
        "sh3": -2.0 * sun["s2"] * (sun["z23"] - sun["z21"]),
        # Lunar periodic amplitudes
        "ee2": 2.0 * moon["s1"] * moon["s6"],
        "e3": 2.0 * moon["s1"] * moon["s7"],
        "xi2": 2.0 * moon["s2"] * moon["z12"],
        "xi3": 2.0 * moon["s2"] * (moon["z13"] - moon["z11"]),
        "xl2": -2.0 * moon["s3"] * moon["z2"],
        "xl3": -2.0 * moon["s3"] * (moon["z3"] - moon["z1"]),
        "xl4": -2.0 * moon["s3"] * (-21.0 - 9.0 * emsq) * ZEL,
        "xgh2": 2.0 * moon["s4"] * moon["z32"],
        "xgh3": 2.0 * moon["s4"] * (moon["z33"] - moon["z31"]),
        "xgh4": -18.0 * moon["s4"] * ZEL,
        "xh2": -2.0 * moon["s2"] * moon["z22"],
        "xh3": -2.0 * moon["s2"] * (moon["z23"] - moon["z21"]),
    }


@dataclass(frozen=True)
class LunarSolarPeriodics:
    """Long-period lunar and solar periodic amplitudes."""
    zmol: float
    zmos: float
    se2: float
    se3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    ee2: float
    e3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float

    def apply(
        self,
        t: float,
        ep: float,
        inclp: float,
        nodep: float,
        argpp: float,
        mp: float,
        opsmode: str,
    ) -> tuple[float, float, float, float, float]:
        """Add the periodics at ``t`` minutes to the mean elements.

        Below 0.2 rad perturbed inclination the Lyddane formulation is used
        so the node stays well defined.

        Returns:
            (ep, inclp, nodep, argpp, mp)
        """
        zm = self.zmos + ZNS * t
        zf = zm + 2.0 * ZES * math.sin(zm)
        sinzf = math.sin(zf)
        f2 = 0.5 * sinzf * sinzf - 0.25
        f3 = -0.5 * sinzf * math.cos(zf)
        ses = self.se2 * f2 + self.se3 * f3
        sis = self.si2 * f2 + self.si3 * f3
        sls = self.sl2 * f2 + self.sl3 * f3 + self.sl4 * sinzf
        sghs = self.sgh2 * f2 + self.sgh3 * f3 + self.sgh4 * sinzf
        shs = self.sh2 * f2 + self.sh3 * f3

        zm = self.zmol + ZNL * t
        zf = zm + 2.0 * ZEL * math.sin(zm)
        sinzf = math.sin(zf)
        f2 = 0.5 * sinzf * sinzf - 0.25
        f3 = -0.5 * sinzf * math.cos(zf)
        sel = self.ee2 * f2 + self.e3 * f3
        sil = self.xi2 * f2 + self.xi3 * f3
        sll = self.xl2 * f2 + self.xl3 * f3 + self.xl4 * sinzf
        sghl = self.xgh2 * f2 + self.xgh3 * f3 + self.xgh4 * sinzf
        shll = self.xh2 * f2 + self.xh3 * f3

        pe = ses + sel
        pinc = sis + sil
        pl = sls + sll
        pgh = sghs + sghl
        ph = shs + shll

        inclp = inclp + pinc
        ep = ep + pe
        sinip = math.sin(inclp)
        cosip = math.cos(inclp)

        if inclp >= 0.2:
            ph = ph / sinip
            pgh = pgh - cosip * ph
            argpp = argpp + pgh
            nodep = nodep + ph
            mp = mp + pl
            return ep, inclp, nodep, argpp, mp

        sinop = math.sin(nodep)
        cosop = math.cos(nodep)
        alfdp = sinip * sinop
        betdp = sinip * cosop
        dalf = ph * cosop + pinc * cosip * sinop
        dbet = -ph * sinop + pinc * cosip * cosop
        alfdp = alfdp + dalf
        betdp = betdp + dbet
        nodep = math.fmod(nodep, TWO_PI)
        if nodep < 0.0 and opsmode == "a":
            nodep = nodep + TWO_PI
        xls = mp + argpp + cosip * nodep
        dls = pl + pgh - pinc * nodep * sinip
        xls = xls + dls
        xnoh = nodep
        nodep = math.atan2(alfdp, betdp)
        if nodep < 0.0 and opsmode == "a":
            nodep = nodep + TWO_PI
        if abs(xnoh - nodep) > math.pi:
            if nodep < xnoh:
                nodep = nodep + TWO_PI
            else:
                nodep = nodep - TWO_PI
        mp = mp + pl
        argpp = xls - mp - cosip * nodep
        return ep, inclp, nodep, argpp, mp


@dataclass(frozen=True)
class Resonance:
    """Geopotential resonance coefficients.

    ``irez`` is 0 for no resonance, 1 for synchronous (24 h) and 2 for
    half-day (12 h) orbits.
    """
    irez: int = 0
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


@dataclass(frozen=True)
class DeepSpaceTerms:
    """Everything SDP4 adds on top of the near-earth model for one element set."""
    periodics: LunarSolarPeriodics
    resonance: Resonance
    dedt: float
    didt: float
    dmdt: float
    dnodt: float
    domdt: float
    gsto: float
    no_unkozai: float
    argpo: float
    argpdot: float

    def secular(
        self,
        t: float,
        em: float,
        argpm: float,
        inclm: float,
        mm: float,
        nodem: float,
    ) -> tuple[float, float, float, float, float, float]:
        """Apply lunar-solar secular rates and resonance at ``t`` minutes.

        The resonance integrator always starts from epoch, so the result
        depends only on ``t``.

        Returns:
            (em, argpm, inclm, mm, nodem, nm)
        """
        res = self.resonance
        no = self.no_unkozai
        theta = math.fmod(self.gsto + t * RPTIM, TWO_PI)
        em = em + self.dedt * t
        inclm = inclm + self.didt * t
        argpm = argpm + self.domdt * t
        nodem = nodem + self.dnodt * t
        mm = mm + self.dmdt * t
        nm = no

        if res.irez == 0:
            return em, argpm, inclm, mm, nodem, nm

        atime = 0.0
        xni = no
        xli = res.xlamo
        delt = STEP if t > 0.0 else -STEP

        while True:
            xndt, xldot, xnddt = self._resonance_rates(res, atime, xli, xni)
            if abs(t - atime) < STEP:
                ft = t - atime
                break
            xli = xli + xldot * delt + xndt * STEP2
            xni = xni + xndt * delt + xnddt * STEP2
            atime = atime + delt

        nm = xni + xndt * ft + xnddt * ft * ft * 0.5
        xl = xli + xldot * ft + xndt * ft * ft * 0.5
        if res.irez != 1:
            mm = xl - 2.0 * nodem + 2.0 * theta
        else:
            mm = xl - nodem - argpm + theta
        return em, argpm, inclm, mm, nodem, nm

    def _resonance_rates(
        self, res: Resonance, atime: float, xli: float, xni: float
    ) -> tuple[float, float, float]:
        xldot = xni + res.xfact
        if res.irez != 2:
            xndt = (
                res.del1 * math.sin(xli - 0.13130908)
                + res.del2 * math.sin(2.0 * (xli - 2.8843198))
                + res.del3 * math.sin(3.0 * (xli - 0.37448087))
            )
            xnddt = (
                res.del1 * math.cos(xli - 0.13130908)
                + 2.0 * res.del2 * math.cos(2.0 * (xli - 2.8843198))
                + 3.0 * res.del3 * math.cos(3.0 * (xli - 0.37448087))
            )
            return xndt, xldot, xnddt * xldot

        g22, g32, g44, g52, g54 = 5.7686396, 0.95240898, 1.8014998, 1.0508330, 4.4108898
        xomi = self.argpo + self.argpdot * atime
        x2omi = xomi + xomi
        x2li = xli + xli
        xndt = (
            res.d2201 * math.sin(x2omi + xli - g22)
            + res.d2211 * math.sin(xli - g22)
            + res.d3210 * math.sin(xomi + xli - g32)
            + res.d3222 * math.sin(-xomi + xli - g32)
            + res.d4410 * math.sin(x2omi + x2li - g44)
            + res.d4422 * math.sin(x2li - g44)
            + res.d5220 * math.sin(xomi + xli - g52)
            + res.d5232 * math.sin(-xomi + xli - g52)
            + res.d5421 * math.sin(xomi + x2li - g54)
            + res.d5433 * math.sin(-xomi + x2li - g54)
        )
        xnddt = (
            res.d2201 * math.cos(x2omi + xli - g22)
            + res.d2211 * math.cos(xli - g22)
            + res.d3210 * math.cos(xomi + xli - g32)
            + res.d3222 * math.cos(-xomi + xli - g32)
            + res.d5220 * math.cos(xomi + xli - g52)
            + res.d5232 * math.cos(-xomi + xli - g52)
            + 2.0 * (
                res.d4410 * math.cos(x2omi + x2li - g44)
                + res.d4422 * math.cos(x2li - g44)
                + res.d5421 * math.cos(xomi + x2li - g54)
                + res.d5433 * math.cos(-xomi + x2li - g54)
            )
        )
        return xndt, xldot, xnddt * xldot


def init_deep_space(
    epoch: float,
    ecco: float,
    argpo: float,
    inclo: float,
    nodeo: float,
    mo: float,
    no_unkozai: float,
    mdot: float,
    nodedot: float,
    argpdot: float,
    gsto: float,
    xke: float,
) -> DeepSpaceTerms:
    """Compute the deep-space coefficients for an element set.

    Args:
        epoch: Days since 1950 Jan 0.0 UTC
        ecco, argpo, inclo, nodeo, mo: Mean elements at epoch [rad]
        no_unkozai: Un-Kozai'd mean motion [rad/min]
        mdot, nodedot, argpdot: Near-earth secular rates [rad/min]
        gsto: Greenwich sidereal time at epoch [rad]
        xke: Gravity model xke

    Returns:
        DeepSpaceTerms for use by the propagator
    """
    geo = _dscom(epoch, ecco, argpo, inclo, nodeo, no_unkozai)
    sun = geo["sun"]
    moon = geo["moon"]
    sinim = geo["sinim"]
    cosim = geo["cosim"]
    emsq = geo["emsq"]
    periodics = LunarSolarPeriodics(
        **{name: geo[name] for name in LunarSolarPeriodics.__dataclass_fields__}
    )

    nm = no_unkozai
    em = ecco
    xpidot = argpdot + nodedot

    irez = 0
    if 0.0034906585 < nm < 0.0052359877:
        irez = 1
    if 8.26e-3 <= nm <= 9.24e-3 and em >= 0.5:
        irez = 2

    ses = sun["s1"] * ZNS * sun["s5"]
    sis = sun["s2"] * ZNS * (sun["z11"] + sun["z13"])
    sls = -ZNS * sun["s3"] * (sun["z1"] + sun["z3"] - 14.0 - 6.0 * emsq)
    sghs = sun["s4"] * ZNS * (sun["z31"] + sun["z33"] - 6.0)
    shs = -ZNS * sun["s2"] * (sun["z21"] + sun["z23"])
    near_polar_flip = inclo < 5.2359877e-2 or inclo > math.pi - 5.2359877e-2
    if near_polar_flip:
        shs = 0.0
    if sinim != 0.0:
        shs = shs / sinim
    sgs = sghs - cosim * shs

    dedt = ses + moon["s1"] * ZNL * moon["s5"]
    didt = sis + moon["s2"] * ZNL * (moon["z11"] + moon["z13"])
    dmdt = sls - ZNL * moon["s3"] * (moon["z1"] + moon["z3"] - 14.0 - 6.0 * emsq)
    sghl = moon["s4"] * ZNL * (moon["z31"] + moon["z33"] - 6.0)
    shll = -ZNL * moon["s2"] * (moon["z21"] + moon["z23"])
    if near_polar_flip:
        shll = 0.0
    domdt = sgs + sghl
    dnodt = shs
    if sinim != 0.0:
        domdt = domdt - cosim / sinim * shll
        dnodt = dnodt + shll / sinim

    theta = math.fmod(gsto, TWO_PI)
    resonance = Resonance()

    if irez != 0:
        aonv = (nm / xke) ** X2O3

        if irez == 2:
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
            f522 = 9.84375 * sinim * (
                sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
                + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq)
            )
            f523 = sinim * (
                4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
                + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq)
            )
            f542 = 29.53125 * sinim * (
                2.0 - 8.0 * cosim + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq)
            )
            f543 = 29.53125 * sinim * (
                -2.0 - 8.0 * cosim + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq)
            )

            xno2 = nm * nm
            ainv2 = aonv * aonv
            temp1 = 3.0 * xno2 * ainv2
            temp = temp1 * 1.7891679e-6  # root22
            d2201 = temp * f220 * g201
            d2211 = temp * f221 * g211
            temp1 = temp1 * aonv
            temp = temp1 * 3.7393792e-7  # root32
            d3210 = temp * f321 * g310
            d3222 = temp * f322 * g322
            temp1 = temp1 * aonv
            temp = 2.0 * temp1 * 7.3636953e-9  # root44
            d4410 = temp * f441 * g410
            d4422 = temp * f442 * g422
            temp1 = temp1 * aonv
            temp = temp1 * 1.1428639e-7  # root52
            d5220 = temp * f522 * g520
            d5232 = temp * f523 * g532
            temp = 2.0 * temp1 * 2.1765803e-9  # root54
            d5421 = temp * f542 * g521
            d5433 = temp * f543 * g533
            resonance = Resonance(
                irez=2,
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
                xfact=mdot + dmdt + 2.0 * (nodedot + dnodt - RPTIM) - no_unkozai,
                xlamo=math.fmod(mo + nodeo + nodeo - theta - theta, TWO_PI),
            )
        else:
            g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
            g310 = 1.0 + 2.0 * emsq
            g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
            f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
            f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
            f330 = 1.0 + cosim
            f330 = 1.875 * f330 * f330 * f330
            del1 = 3.0 * nm * nm * aonv * aonv
            del2 = 2.0 * del1 * f220 * g200 * 1.7891679e-6  # q22
            del3 = 3.0 * del1 * f330 * g300 * 2.2123015e-7 * aonv  # q33
            del1 = del1 * f311 * g310 * 2.1460748e-6 * aonv  # q31
            resonance = Resonance(
                irez=1,
                del1=del1,
                del2=del2,
                del3=del3,
                xfact=mdot + xpidot - RPTIM + dmdt + domdt + dnodt - no_unkozai,
                xlamo=math.fmod(mo + nodeo + argpo - theta, TWO_PI),
            )

    return DeepSpaceTerms(
        periodics=periodics,
        resonance=resonance,
        dedt=dedt,
        didt=didt,
        dmdt=dmdt,
        dnodt=dnodt,
        domdt=domdt,
        gsto=gsto,
        no_unkozai=no_unkozai,
        argpo=argpo,
        argpdot=argpdot,
    )
