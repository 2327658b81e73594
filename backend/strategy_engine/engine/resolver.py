"""
Profile Resolver - assembles one ConstituencyProfile from partial records.

Each field is filled from the first tier that has it:
1. the exact-match record (and its election history / sentiment signals)
2. the same-region estimate: mean over the region's records, else the
   region/district tables and deterministic area heuristics
3. the global default in StrategyWeights.defaults

The tier used is recorded per field in ``profile.provenance``. The built
profile is validated before it leaves the resolver.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from statistics import mean
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import CollaboratorUnavailable, MalformedProfile, UnknownConstituency
from ..models import (
    AreaType, ConstituencyProfile, Demographics, ImpactTier, PriorStanding,
    Provenance, SourceRecord, SwingFactors,
)
from ..services.record_store import RecordStore
from ..services.registry import ConstituencyRegistry, RegionalProfiles, RegistryEntry
from .weights import DEFAULT_WEIGHTS, StrategyWeights

logger = logging.getLogger(__name__)

DEMOGRAPHIC_TOLERANCE = 1.0


class ProfileResolver:
    """Builds immutable profiles; never fails for a known constituency."""

    def __init__(
        self,
        registry: ConstituencyRegistry,
        store: RecordStore,
        regional: Optional[RegionalProfiles] = None,
        weights: StrategyWeights = DEFAULT_WEIGHTS,
        focus_party: str = "BJP",
        ruling_party: str = "AITC",
    ):
        self.registry = registry
        self.store = store
        self.regional = regional or RegionalProfiles()
        self.weights = weights
        self.focus_party = focus_party
        self.ruling_party = ruling_party

    # ---------- public API ----------

    def resolve(self, constituency_id: str) -> ConstituencyProfile:
        """Resolve a constituency by id through all fallback tiers."""
        entry = self.registry.get(constituency_id)
        record = self._fetch(constituency_id)
        if entry is None and record is None:
            logger.info("Unknown constituency requested: %s", constituency_id)
            raise UnknownConstituency(constituency_id)
        return self._build(record or SourceRecord(constituency_id=constituency_id), entry)

    def build(self, record: SourceRecord) -> ConstituencyProfile:
        """Build a profile from a caller-supplied partial record."""
        return self._build(record, self.registry.get(record.constituency_id))

    # ---------- collaborator access ----------

    def _fetch(self, constituency_id: str) -> Optional[SourceRecord]:
        try:
            return self.store.fetch(constituency_id)
        except CollaboratorUnavailable as e:
            logger.warning("Record store unavailable for %s, using estimates: %s", constituency_id, e)
            return None

    def _region_peers(self, region: str) -> List[SourceRecord]:
        try:
            return self.store.fetch_region(region)
        except CollaboratorUnavailable as e:
            logger.warning("Record store unavailable for region %s: %s", region, e)
            return []

    # ---------- assembly ----------

    def _build(self, record: SourceRecord, entry: Optional[RegistryEntry]) -> ConstituencyProfile:
        defaults = self.weights.defaults
        regional = self.regional
        prov: Dict[str, Provenance] = {}

        name = record.name or (entry.name if entry else record.constituency_id)
        district = record.district or (entry.district if entry else None)
        region = record.region or (entry.region if entry else None)
        located = district is not None
        district = district or defaults.district
        region = region or defaults.region
        assembly_number = record.assembly_number or (entry.assembly_number if entry else None)

        peers = [p for p in self._region_peers(region) if p.constituency_id != record.constituency_id]
        latest = max(record.history, key=lambda c: c.year) if record.history else None

        def pick(key: str, *tiers: Tuple[Provenance, Callable[[], Any]]) -> Any:
            for tier, getter in tiers:
                value = getter()
                if value is not None:
                    prov[key] = tier
                    return value
            return None

        def peer_mean(attr: str) -> Optional[float]:
            values = [getattr(p, attr) for p in peers if getattr(p, attr) is not None]
            return round(mean(values), 1) if values else None

        R, G, D = Provenance.RECORD, Provenance.REGIONAL, Provenance.DEFAULT

        total_voters = pick(
            "total_voters",
            (R, lambda: record.total_voters),
            (G, lambda: _as_int(peer_mean("total_voters"))),
            (G, lambda: _as_int(regional.region_value(region, "total_voters"))),
            (D, lambda: defaults.total_voters),
        )

        area_type = pick(
            "area_type",
            (R, lambda: record.area_type),
            (G, lambda: self._estimate_area_type(district, name) if located else None),
            (D, lambda: AreaType.SEMI_URBAN),
        )

        # ----- prior standing -----
        focus_vote_share = pick(
            "focus_vote_share",
            (R, lambda: record.focus_vote_share),
            (R, lambda: latest.focus_vote_share if latest else None),
            (G, lambda: peer_mean("focus_vote_share")),
            (G, lambda: self._estimate_focus_share(region, district, name) if located else None),
            (D, lambda: defaults.focus_vote_share),
        )
        recorded_winner = record.winning_party or (latest.winner_party if latest else None)
        focus_position = pick(
            "focus_position",
            (R, lambda: record.focus_position),
            (R, lambda: 1 if recorded_winner == self.focus_party else None),
            (G, lambda: (2 if focus_vote_share >= 35 else 3) if prov["focus_vote_share"] is not D else None),
            (D, lambda: defaults.focus_position),
        )
        winning_party = pick(
            "winning_party",
            (R, lambda: recorded_winner),
            (D, lambda: self.focus_party if focus_position == 1 else self.ruling_party),
        )
        margin_votes = pick(
            "margin_votes",
            (R, lambda: record.margin_votes),
            (R, lambda: latest.margin_votes if latest else None),
            (G, lambda: _as_int(peer_mean("margin_votes"))),
            (D, lambda: defaults.margin_votes),
        )
        winner_vote_share = record.winner_vote_share
        if winner_vote_share is None and latest is not None:
            winner_vote_share = latest.winner_vote_share

        standing = PriorStanding(
            winning_party=winning_party,
            incumbent_name=record.incumbent_name,
            margin_votes=margin_votes,
            focus_position=focus_position,
            focus_vote_share=focus_vote_share,
            winner_vote_share=winner_vote_share,
            runner_up_vote_share=record.runner_up_vote_share,
            focus_candidate=record.focus_candidate,
        )

        # ----- demographics -----
        groups: Dict[str, Dict[str, float]] = {}
        for group in Demographics.GROUPS:
            groups[group] = pick(
                group,
                (R, lambda g=group: getattr(record, g) or None),
                (G, lambda g=group: _mean_group([getattr(p, g) for p in peers])),
                (G, lambda g=group: self._estimate_group(g, district) if located else None),
                (D, lambda g=group: dict(getattr(defaults, g))),
            )

        def community(key: str) -> Optional[int]:
            share = regional.community_shares.get(key)
            return _round_half_up(total_voters * share / 100.0) if share is not None else None

        matua = pick(
            "matua_population",
            (R, lambda: record.matua_population),
            (G, lambda: community("matua_population") if regional.is_border(district) else None),
        )
        tea = pick(
            "tea_garden_workers",
            (R, lambda: record.tea_garden_workers),
            (G, lambda: community("tea_garden_workers") if regional.is_tea_belt(region) else None),
        )
        demographics = Demographics(matua_population=matua, tea_garden_workers=tea, **groups)

        # ----- swing factors -----
        urban = area_type is AreaType.URBAN
        sentiment_ai = record.sentiment.anti_incumbency if record.sentiment else None
        swing = SwingFactors(
            anti_incumbency=pick(
                "anti_incumbency",
                (R, lambda: record.anti_incumbency),
                (R, lambda: sentiment_ai),
                (G, lambda: peer_mean("anti_incumbency")),
                (G, lambda: regional.region_value(region, "anti_incumbency")),
                (D, lambda: defaults.anti_incumbency),
            ),
            policy_impact=pick(
                "policy_impact",
                (R, lambda: record.policy_impact),
                (G, lambda: self._estimate_policy_impact(district) if located else None),
                (D, lambda: ImpactTier.LOW),
            ),
            welfare_dependency=pick(
                "welfare_dependency",
                (R, lambda: record.welfare_dependency),
                (G, lambda: peer_mean("welfare_dependency")),
                (G, lambda: (27.5 if urban else 45.0) if located else None),
                (D, lambda: defaults.welfare_dependency),
            ),
            unemployment=pick(
                "unemployment",
                (R, lambda: record.unemployment),
                (G, lambda: peer_mean("unemployment")),
                (G, lambda: (32.5 if urban else 45.0) if located else None),
                (D, lambda: defaults.unemployment),
            ),
            corruption_perception=pick(
                "corruption_perception",
                (R, lambda: record.corruption_perception),
                (G, lambda: peer_mean("corruption_perception")),
                (D, lambda: defaults.corruption_perception),
            ),
        )

        key_issues = pick(
            "key_issues",
            (R, lambda: list(record.key_issues) or None),
            (G if located else D, lambda: self._estimate_key_issues(district, name, urban)),
        )

        profile = ConstituencyProfile(
            constituency_id=record.constituency_id,
            name=name,
            district=district,
            region=region,
            assembly_number=assembly_number,
            total_voters=total_voters,
            area_type=area_type,
            standing=standing,
            history=sorted(record.history, key=lambda c: c.year, reverse=True),
            demographics=demographics,
            swing_factors=swing,
            sentiment=record.sentiment,
            key_issues=key_issues,
            booth_history=list(record.booth_history),
            provenance=prov,
        )
        validate_profile(profile, self.weights, self.focus_party)

        estimated = sum(1 for p in prov.values() if p is not R)
        logger.info("Resolved %s (%s) with %d estimated fields", profile.constituency_id, profile.name, estimated)
        return profile

    # ---------- regional heuristics ----------

    def _estimate_area_type(self, district: str, name: str) -> AreaType:
        if self.regional.is_urban(district, name):
            return AreaType.URBAN
        if self.regional.is_tribal(district):
            return AreaType.RURAL
        return AreaType.SEMI_URBAN

    def _estimate_focus_share(self, region: str, district: str, name: str) -> Optional[float]:
        base = self.regional.region_value(region, "focus_vote_share")
        if base is None:
            return None
        share = base
        if self.regional.is_urban(district, name):
            share += 5
        if self.regional.is_border(district):
            share += 8
        if self.regional.is_minority_dominated(district, name):
            share -= 15
        return round(max(15.0, min(55.0, share)), 1)

    def _estimate_policy_impact(self, district: str) -> ImpactTier:
        if self.regional.is_border(district):
            return ImpactTier.HIGH
        if self.regional.is_medium_impact(district):
            return ImpactTier.MEDIUM
        return ImpactTier.LOW

    def _estimate_group(self, group: str, district: str) -> Optional[Dict[str, float]]:
        if group == "religion":
            minority = self.regional.district_value(district, "minority_percentage")
            if minority is None:
                return None
            other = 3.0
            return {"hindu": round(100.0 - minority - other, 1), "muslim": float(minority), "other": other}
        if group == "caste" and self.regional.is_tribal(district):
            return {"general": 30.0, "obc": 25.0, "sc_st": 45.0}
        return None

    def _estimate_key_issues(self, district: str, name: str, urban: bool) -> List[str]:
        regional = self.regional
        if urban:
            issues = ["Urban infrastructure", "Traffic congestion", "Pollution", "Law and order"]
        elif regional.is_tribal(district):
            issues = ["Tribal rights", "Forest access", "Mining issues", "Healthcare access"]
        else:
            issues = ["Agricultural crisis", "Rural unemployment", "Road connectivity", "Healthcare"]

        if regional.is_border(district):
            issues += ["Border security", "CAA implementation", "Cross-border infiltration"]
        if "24 Parganas" in district:
            issues += ["Sundarbans development", "Cyclone protection"]
        if regional.is_hill(district):
            issues += ["Gorkhaland demand", "Tea industry crisis", "Tourism development"]
        return issues[:4]


# ---------- validation ----------

def validate_profile(
    profile: ConstituencyProfile,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
    focus_party: Optional[str] = None,
) -> None:
    """
    Reject profiles that break an invariant.

    Raises MalformedProfile naming the first offending field; nothing is
    patched. When focus_party is given, a first-place finish must agree with
    the recorded winner.
    """
    cid = profile.constituency_id

    def bad(field: str, reason: str) -> MalformedProfile:
        return MalformedProfile(field, reason, constituency_id=cid)

    if profile.total_voters <= 0:
        raise bad("total_voters", f"must be positive, got {profile.total_voters}")
    cap = weights.defaults.max_total_voters
    if profile.total_voters > cap:
        raise bad("total_voters", f"exceeds the plausible electorate cap of {cap}, got {profile.total_voters}")

    standing = profile.standing
    if standing.focus_position < 1:
        raise bad("standing.focus_position", f"must be >= 1, got {standing.focus_position}")
    if standing.margin_votes < 0:
        raise bad("standing.margin_votes", f"must be non-negative, got {standing.margin_votes}")
    if focus_party is not None and (standing.focus_position == 1) != (standing.winning_party == focus_party):
        raise bad(
            "standing.winning_party",
            f"{standing.winning_party} won but {focus_party} finished at position {standing.focus_position}",
        )

    years = [c.year for c in profile.history]
    if any(newer <= older for newer, older in zip(years, years[1:])):
        raise bad("history", f"cycles must be newest first with distinct years, got {years}")

    percentages: List[Tuple[str, Optional[float]]] = [
        ("standing.focus_vote_share", standing.focus_vote_share),
        ("standing.winner_vote_share", standing.winner_vote_share),
        ("standing.runner_up_vote_share", standing.runner_up_vote_share),
        ("swing_factors.anti_incumbency", profile.swing_factors.anti_incumbency),
        ("swing_factors.welfare_dependency", profile.swing_factors.welfare_dependency),
        ("swing_factors.unemployment", profile.swing_factors.unemployment),
        ("swing_factors.corruption_perception", profile.swing_factors.corruption_perception),
    ]
    if profile.sentiment is not None:
        percentages += [
            ("sentiment.overall", profile.sentiment.overall),
            ("sentiment.focus_party", profile.sentiment.focus_party),
            ("sentiment.anti_incumbency", profile.sentiment.anti_incumbency),
        ]
    for i, cycle in enumerate(profile.history):
        percentages += [
            (f"history[{i}].focus_vote_share", cycle.focus_vote_share),
            (f"history[{i}].winner_vote_share", cycle.winner_vote_share),
        ]
    percentages += [(f"booth_history[{i}]", v) for i, v in enumerate(profile.booth_history)]

    demographics = profile.demographics
    for group in Demographics.GROUPS:
        values = getattr(demographics, group)
        percentages += [(f"demographics.{group}.{k}", v) for k, v in values.items()]

    for field, value in percentages:
        if value is not None and not 0 <= value <= 100:
            raise bad(field, f"percentage out of range [0, 100]: {value}")

    for group in Demographics.GROUPS:
        values = getattr(demographics, group)
        if values:
            total = sum(values.values())
            if abs(total - 100) > DEMOGRAPHIC_TOLERANCE:
                raise bad(f"demographics.{group}", f"shares sum to {total:.1f}, expected 100 +/- 1")

    for field in ("matua_population", "tea_garden_workers"):
        count = getattr(demographics, field)
        if count is not None and count < 0:
            raise bad(f"demographics.{field}", f"must be non-negative, got {count}")
        if count is not None and count > profile.total_voters:
            raise bad(f"demographics.{field}", f"{count} exceeds the electorate of {profile.total_voters}")


# ---------- helpers ----------

def _as_int(value: Optional[float]) -> Optional[int]:
    return int(value) if value is not None else None


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _mean_group(groups: List[Dict[str, float]]) -> Optional[Dict[str, float]]:
    """Average category shares across records, renormalised to 100."""
    present = [g for g in groups if g]
    if not present:
        return None
    categories: List[str] = []
    for g in present:
        categories += [k for k in g if k not in categories]
    means = {k: mean(g.get(k, 0.0) for g in present) for k in categories}
    total = sum(means.values())
    if total <= 0:
        return None
    return {k: round(v * 100.0 / total, 1) for k, v in means.items()}
