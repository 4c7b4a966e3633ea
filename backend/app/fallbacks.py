# backend/app/fallbacks.py
"""
Same-shape substitutes used whenever an upstream call does not succeed.

Everything here is local and deterministic, except the optional rating
jitter on fallback movies, which is driven by the RNG returned from
``rating_rng`` (seeded when MOVIE_RATING_SEED is set).
"""

import random
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional, Sequence, Tuple

from .agents.heuristic_agent import normalize_title
from .config import Settings
from .models import (
    MovieAnalysis,
    Recommendation,
    RecommendationItem,
    SimilarMovie,
    VibeAnalysis,
)

# ---------------------------------------------------------------
#                     IMAGE PIPELINE DEFAULTS
# ---------------------------------------------------------------

DEFAULT_IMAGE_DESCRIPTION = (
    "A space with modern aesthetic elements and contemporary design features"
)

DEFAULT_VIBE_ANALYSIS = VibeAnalysis(
    primary_vibe="contemporary",
    secondary_vibes=["modern", "stylish"],
    cultural_context="A space with contemporary appeal and modern sensibilities",
    aesthetic_keywords=["modern", "contemporary", "stylish"],
    mood_descriptors=["sophisticated", "clean", "appealing"],
)

FALLBACK_CATEGORIES: Tuple[str, ...] = ("restaurants", "activities", "music", "experiences")

# Words fallback items may add on top of the analysis' own keywords and moods.
FALLBACK_TAG_VOCABULARY = frozenset(
    {
        "dining", "restaurant", "contemporary", "playlist", "ambient", "soundscape",
        "culture", "gallery", "workshop", "creative", "tour", "experience",
        "immersive", "curated",
    }
)


def _title_case(text: str) -> str:
    return text[:1].upper() + text[1:]


def _tags(*groups: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(t for group in groups for t in group))


def fallback_category_items(category: str, vibe: VibeAnalysis) -> List[RecommendationItem]:
    """Two templated items for ``category`` built from the vibe fields."""
    primary = vibe.primary_vibe
    keywords = vibe.aesthetic_keywords
    moods = vibe.mood_descriptors
    lead_mood = _title_case(moods[0]) if moods else "Contemporary"
    all_keywords = ", ".join(keywords)
    all_moods = ", ".join(moods)

    def item(n, name, description, reason, confidence, tags, rating):
        return RecommendationItem(
            id=f"{category}-fallback-{n}",
            name=name,
            description=description,
            reason=reason,
            confidence=confidence,
            tags=tags,
            rating=rating,
        )

    if category == "restaurants":
        return [
            item(
                1,
                f"{_title_case(primary)} Bistro",
                f"A restaurant that embodies {primary} dining with {all_keywords} elements",
                f"Matches your {primary} aesthetic with sophisticated ambiance",
                0.75,
                _tags(keywords[:3], ["dining", "restaurant"]),
                4.2,
            ),
            item(
                2,
                f"The {lead_mood} Table",
                f"Contemporary dining space reflecting {all_moods} atmosphere",
                f"Complements the {primary} vibe with curated dining experience",
                0.72,
                _tags(moods[:2], ["contemporary", "dining"]),
                4.0,
            ),
        ]

    if category == "music":
        return [
            item(
                1,
                f"{_title_case(primary)} Playlist",
                f"Curated music selection perfect for {primary} spaces",
                f"Sound design that complements {primary} aesthetics",
                0.80,
                _tags(keywords[:2], ["playlist", "ambient"]),
                4.5,
            ),
            item(
                2,
                f"{lead_mood} Soundscape",
                f"Audio experiences that match {all_moods} moods",
                f"Musical elements that enhance the {primary} atmosphere",
                0.76,
                _tags(moods[:2], ["soundscape", "ambient"]),
                4.3,
            ),
        ]

    if category == "activities":
        return [
            item(
                1,
                f"{_title_case(primary)} Gallery Experience",
                f"Cultural activities that celebrate {primary} aesthetics",
                f"Activities aligned with {primary} cultural sensibilities",
                0.78,
                _tags(keywords[:3], ["culture", "gallery"]),
                4.4,
            ),
            item(
                2,
                f"{lead_mood} Workshop",
                f"Hands-on experiences in {all_moods} environments",
                f"Interactive activities that match your {primary} preferences",
                0.74,
                _tags(moods[:2], ["workshop", "creative"]),
                4.1,
            ),
        ]

    if category == "experiences":
        return [
            item(
                1,
                f"{_title_case(primary)} Space Tour",
                f"Curated experiences showcasing {primary} design and culture",
                f"Experiences that celebrate {primary} aesthetic principles",
                0.77,
                _tags(keywords[:3], ["tour", "experience"]),
                4.3,
            ),
            item(
                2,
                f"The {lead_mood} Experience",
                f"Immersive experiences designed for {all_moods} appreciation",
                f"Tailored experiences that resonate with {primary} values",
                0.73,
                _tags(moods[:2], ["immersive", "curated"]),
                4.2,
            ),
        ]

    return []


def fallback_recommendations(vibe: VibeAnalysis) -> List[Recommendation]:
    return [
        Recommendation(category=category, items=fallback_category_items(category, vibe))
        for category in FALLBACK_CATEGORIES
    ]


# ---------------------------------------------------------------
#                     MOVIE PIPELINE DEFAULTS
# ---------------------------------------------------------------


def default_movie_description(title: str) -> str:
    return (
        f'"{title}" is a film whose tone, story and cultural footprint '
        f"are inferred from its title alone."
    )


@dataclass(frozen=True)
class CandidateMovie:
    title: str
    year: int
    rating: float
    description: str
    elements: Tuple[str, ...]


def _c(title, year, rating, description, *elements) -> CandidateMovie:
    return CandidateMovie(title, year, rating, description, tuple(elements))


# Hand-picked neighbours for the titles in heuristic_agent.KNOWN_MOVIES.
CURATED_SIMILAR = MappingProxyType(
    {
        "parasite": (
            _c("Shoplifters", 2018, 7.9, "A makeshift family of petty thieves in Tokyo is tested by a secret.",
               "drama", "family", "class inequality"),
            _c("Burning", 2018, 7.5, "A slow-burn mystery of envy and obsession between three young Koreans.",
               "thriller", "drama", "korean cinema", "class divide"),
            _c("Memories of Murder", 2003, 8.1, "Detectives chase a serial killer in 1980s rural Korea.",
               "thriller", "korean cinema", "bong joon-ho", "suspense"),
            _c("Us", 2019, 6.8, "A family is terrorised by doppelgangers from a hidden underclass.",
               "thriller", "class inequality", "social satire", "family"),
        ),
        "blade runner 2049": (
            _c("Arrival", 2016, 7.9, "A linguist races to communicate with visitors who perceive time differently.",
               "sci-fi", "drama", "memory", "atmospheric"),
            _c("Ghost in the Shell", 1995, 7.9, "A cyborg agent hunts a hacker and questions her own humanity.",
               "sci-fi", "cyberpunk", "identity", "humanity"),
            _c("Ex Machina", 2014, 7.7, "A programmer tests whether a humanoid AI is truly conscious.",
               "sci-fi", "humanity", "identity", "loneliness"),
        ),
        "grand budapest hotel": (
            _c("Moonrise Kingdom", 2012, 7.8, "Two twelve-year-olds run away together on a New England island.",
               "comedy", "adventure", "wes anderson", "whimsical", "symmetry"),
            _c("Amélie", 2001, 8.3, "A shy Parisian waitress secretly orchestrates small joys for strangers.",
               "comedy", "whimsical", "european", "nostalgia"),
            _c("The Royal Tenenbaums", 2001, 7.6, "An estranged family of former child prodigies reunites.",
               "comedy", "drama", "wes anderson", "symmetry"),
        ),
        "spirited away": (
            _c("My Neighbor Totoro", 1988, 8.1, "Two sisters befriend gentle forest spirits in rural Japan.",
               "fantasy", "animation", "studio ghibli", "miyazaki", "spirits"),
            _c("Howl's Moving Castle", 2004, 8.2, "A cursed young woman finds refuge in a wizard's walking castle.",
               "fantasy", "adventure", "studio ghibli", "miyazaki", "courage"),
            _c("Pan's Labyrinth", 2006, 8.2, "A girl escapes wartime Spain into a dark fairy-tale world.",
               "fantasy", "coming of age", "courage"),
        ),
        "matrix": (
            _c("Dark City", 1998, 7.6, "An amnesiac discovers his city is rebuilt every night by strangers.",
               "sci-fi", "reality", "simulation", "awakening"),
            _c("Ghost in the Shell", 1995, 7.9, "A cyborg agent hunts a hacker and questions her own humanity.",
               "sci-fi", "action", "cyberpunk", "philosophical"),
            _c("Equilibrium", 2002, 7.4, "An enforcer in an emotion-suppressing society joins the resistance.",
               "sci-fi", "action", "rebellion", "martial arts"),
        ),
        "inception": (
            _c("Memento", 2000, 8.4, "A man with no short-term memory hunts his wife's killer.",
               "thriller", "guilt", "grief", "layered narrative", "christopher nolan"),
            _c("Paprika", 2006, 7.7, "A device that lets therapists enter dreams is stolen.",
               "sci-fi", "dreams", "surreal", "mind-bending"),
            _c("Shutter Island", 2010, 8.2, "A marshal investigates a disappearance at an island asylum.",
               "thriller", "guilt", "grief", "reality"),
        ),
        "pulp fiction": (
            _c("Reservoir Dogs", 1992, 8.3, "A jewel heist goes wrong and the survivors suspect a rat.",
               "crime", "tarantino", "sharp dialogue", "loyalty"),
            _c("Snatch", 2000, 8.2, "Boxing promoters and thieves collide over a stolen diamond.",
               "crime", "dark comedy", "chance", "nonlinear"),
            _c("Fargo", 1996, 8.1, "A car salesman's kidnapping scheme spirals in snowbound Minnesota.",
               "crime", "drama", "dark comedy", "violence"),
        ),
        "godfather": (
            _c("Goodfellas", 1990, 8.7, "Three decades in the life of a mob associate.",
               "crime", "drama", "mafia", "loyalty", "power"),
            _c("The Departed", 2006, 8.5, "An undercover cop and a mole in the police hunt each other.",
               "crime", "drama", "corruption", "loyalty"),
            _c("Once Upon a Time in America", 1984, 8.3, "Childhood friends rise through New York's underworld.",
               "crime", "drama", "epic", "mafia"),
        ),
        "casablanca": (
            _c("Roman Holiday", 1953, 8.0, "A princess slips away for a day in Rome with a reporter.",
               "romance", "love", "duty", "classic hollywood"),
            _c("Brief Encounter", 1945, 8.0, "Two married strangers fall quietly in love at a railway station.",
               "romance", "drama", "sacrifice", "love"),
            _c("The English Patient", 1996, 7.4, "A burned patient recalls a doomed wartime affair.",
               "romance", "drama", "war", "world war ii", "love"),
        ),
        "citizen kane": (
            _c("There Will Be Blood", 2007, 8.2, "An oilman's ambition consumes everything around him.",
               "drama", "ambition", "power", "loneliness"),
            _c("Sunset Boulevard", 1950, 8.4, "A faded silent-film star draws a writer into her delusions.",
               "drama", "mystery", "classic hollywood", "memory"),
            _c("The Social Network", 2010, 7.8, "The founding of Facebook and the friendships it cost.",
               "drama", "ambition", "power", "loneliness"),
        ),
        "interstellar": (
            _c("Contact", 1997, 7.5, "A scientist decodes a signal from deep space.",
               "sci-fi", "drama", "space exploration", "love"),
            _c("Gravity", 2013, 7.7, "Two astronauts are stranded after debris destroys their shuttle.",
               "sci-fi", "survival", "space exploration"),
            _c("2001: A Space Odyssey", 1968, 8.3, "A voyage to Jupiter is shadowed by a mysterious monolith.",
               "sci-fi", "adventure", "space exploration", "epic score", "time"),
        ),
        "la la land": (
            _c("Whiplash", 2014, 8.5, "A young drummer is pushed to the edge by a ruthless instructor.",
               "drama", "jazz", "ambition", "dreams"),
            _c("Singin' in the Rain", 1952, 8.3, "Hollywood stumbles into the era of talking pictures.",
               "romance", "musical", "los angeles", "dance"),
            _c("Begin Again", 2013, 7.4, "A songwriter and a fallen producer make an album across New York.",
               "romance", "drama", "dreams", "love"),
        ),
    }
)

# Genre classics for titles without a curated entry.
GENRE_CLASSICS = MappingProxyType(
    {
        "thriller": (
            _c("Se7en", 1995, 8.6, "Two detectives track a killer staging the seven deadly sins.",
               "thriller", "crime", "suspense", "moral ambiguity"),
            _c("Gone Girl", 2014, 8.1, "A wife's disappearance exposes a marriage built on deception.",
               "thriller", "mystery", "deception", "psychological"),
        ),
        "drama": (
            _c("The Shawshank Redemption", 1994, 9.3, "Two prisoners forge a friendship over decades.",
               "drama", "struggle", "human connection", "character-driven"),
            _c("Manchester by the Sea", 2016, 7.8, "A grieving man becomes guardian to his nephew.",
               "drama", "family", "grief", "emotional"),
        ),
        "sci-fi": (
            _c("Arrival", 2016, 7.9, "A linguist races to communicate with visitors who perceive time differently.",
               "sci-fi", "drama", "humanity", "cerebral"),
            _c("Ex Machina", 2014, 7.7, "A programmer tests whether a humanoid AI is truly conscious.",
               "sci-fi", "technology", "identity", "high-concept"),
        ),
        "horror": (
            _c("Get Out", 2017, 7.8, "A weekend with his girlfriend's family turns sinister.",
               "horror", "thriller", "fear", "unsettling"),
            _c("The Shining", 1980, 8.4, "A winter caretaker descends into madness in an isolated hotel.",
               "horror", "isolation", "eerie", "atmospheric"),
        ),
        "comedy": (
            _c("The Big Lebowski", 1998, 8.1, "A laid-back bowler is mistaken for a millionaire.",
               "comedy", "crime", "absurdity", "cult"),
            _c("Superbad", 2007, 7.6, "Two friends try to make the most of their last high-school party.",
               "comedy", "friendship", "misadventure", "feel-good"),
        ),
        "romance": (
            _c("Before Sunrise", 1995, 8.1, "Two strangers spend one night walking through Vienna.",
               "romance", "drama", "connection", "tender"),
            _c("Eternal Sunshine of the Spotless Mind", 2004, 8.3, "Ex-lovers erase each other from memory.",
               "romance", "sci-fi", "love", "bittersweet"),
        ),
        "action": (
            _c("Mad Max: Fury Road", 2015, 8.1, "Rebels flee across the wasteland in a war rig.",
               "action", "adventure", "survival", "kinetic"),
            _c("Die Hard", 1988, 8.2, "A cop takes on terrorists in a locked-down skyscraper.",
               "action", "thriller", "heroism", "blockbuster"),
        ),
        "fantasy": (
            _c("Pan's Labyrinth", 2006, 8.2, "A girl escapes wartime Spain into a dark fairy-tale world.",
               "fantasy", "drama", "courage", "mythic"),
            _c("The Princess Bride", 1987, 8.0, "A farmhand turned pirate rescues his true love.",
               "fantasy", "adventure", "romance", "whimsical"),
        ),
        "mystery": (
            _c("Knives Out", 2019, 7.9, "A detective untangles a crime novelist's suspicious death.",
               "mystery", "comedy", "secrets", "puzzle-box"),
            _c("Chinatown", 1974, 8.1, "A private eye uncovers corruption over Los Angeles water.",
               "mystery", "crime", "corruption", "noir"),
        ),
        "adventure": (
            _c("Raiders of the Lost Ark", 1981, 8.4, "An archaeologist races rivals to the Ark of the Covenant.",
               "adventure", "action", "discovery", "escapist"),
            _c("Life of Pi", 2012, 7.9, "A castaway shares a lifeboat with a Bengal tiger.",
               "adventure", "drama", "the journey", "sweeping"),
        ),
        "crime": (
            _c("Heat", 1995, 8.3, "A master thief and an obsessive detective circle each other.",
               "crime", "thriller", "loyalty", "gritty"),
            _c("No Country for Old Men", 2007, 8.2, "A hunter stumbles onto drug money and a relentless killer.",
               "crime", "thriller", "consequence", "neo-noir"),
        ),
    }
)

MAX_SIMILAR_MOVIES = 6


def movie_match_score(shared_count: int) -> float:
    return min(0.95, 0.6 + shared_count * 0.08)


def rating_rng(settings: Settings) -> random.Random:
    return random.Random(settings.rating_seed)


def jittered_rating(base: float, rng: random.Random, jitter: float) -> float:
    """Simulated rating: ``base`` plus uniform noise, kept within 0–10."""
    if jitter <= 0:
        return base
    value = base + rng.uniform(-jitter, jitter)
    return round(max(0.0, min(value, 10.0)), 1)


def _analysis_terms(analysis: MovieAnalysis) -> List[str]:
    return list(
        dict.fromkeys(
            t.lower() for t in analysis.genres + analysis.themes + analysis.cultural_keywords
        )
    )


def fallback_similar_movies(
    title: str,
    analysis: MovieAnalysis,
    rng: Optional[random.Random] = None,
    jitter: float = 0.0,
) -> List[SimilarMovie]:
    """
    Similar titles from the curated tables, never including ``title`` itself.

    Match scores depend only on the overlap with the analysis, so ordering
    is stable even when ratings are jittered.
    """
    rng = rng or random.Random(0)
    key = normalize_title(title)

    candidates = list(CURATED_SIMILAR.get(key, ()))
    for genre in analysis.genres:
        candidates.extend(GENRE_CLASSICS.get(genre.lower(), ()))
    if not candidates:
        candidates.extend(GENRE_CLASSICS["drama"])

    terms = _analysis_terms(analysis)
    seen = {key}
    movies: List[SimilarMovie] = []
    for cand in candidates:
        cand_key = normalize_title(cand.title)
        if cand_key in seen:
            continue
        seen.add(cand_key)

        shared = [e for e in cand.elements if e.lower() in terms]
        if shared:
            reason = f"Shares {', '.join(shared[:3])} with {title}"
        else:
            reason = f"A {cand.elements[0]} favourite for fans of {title}"

        movies.append(
            SimilarMovie(
                title=cand.title,
                description=cand.description,
                year=cand.year,
                rating=jittered_rating(cand.rating, rng, jitter),
                match_score=movie_match_score(len(shared)),
                reason=reason,
                shared_elements=shared,
            )
        )

    movies.sort(key=lambda m: m.match_score, reverse=True)
    return movies[:MAX_SIMILAR_MOVIES]
