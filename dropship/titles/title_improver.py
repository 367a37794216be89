"""Rule-based cleanup of supplier product titles.

Pure functions with no side effects. Supplier titles are keyword soup
("108-key G601099512345 Mekanisk RGB Gaming Tastatur Vietnam"); the improver
strips noise, classifies the product and rebuilds a short Norwegian title
from a per-type template.

Applying improve_title to its own output is not guaranteed to be stable.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

# Applied in order; the final rule collapses whitespace left by the others
REMOVE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\bG\d{12,}\b", re.IGNORECASE), ""),
    (
        re.compile(
            r"\b(Vietnam|Kinesisk|Chinese|Cherry\s+kompatibel|kompatibelt\s+med\s+cherry)\b",
            re.IGNORECASE,
        ),
        "",
    ),
    (re.compile(r"\b(Temu\s+Norway|Temu|Alibaba|eBay)\b", re.IGNORECASE), ""),
    (re.compile(r"\b(For\s+bedrift|For\s+home|For\s+office)\b", re.IGNORECASE), ""),
    (re.compile(r"\b(Inkludert|Included|Kompatibel|Compatible)\b", re.IGNORECASE), ""),
    (
        re.compile(
            r"\b(Stasjonær\s+datamaskin|Bærbar\s+pc|Desktop|Laptop)\b", re.IGNORECASE
        ),
        "",
    ),
    (
        re.compile(r"\b(RGB\s+bakgrunnsbelyst|RGB\s+backlit|LED\s+lighting)\b", re.IGNORECASE),
        "",
    ),
    (re.compile(r"\b(USB\s+til\s+USB|USB\s+to\s+USB)\b", re.IGNORECASE), "USB"),
    (re.compile(r"\b(Produkt|Product)\b", re.IGNORECASE), ""),
    (re.compile(r"\b(Handle|Sjekk\s+ut|Finn)\b", re.IGNORECASE), ""),
    (re.compile(r"\s+"), " "),
]

NORMALIZE_PATTERNS: list[tuple[re.Pattern, str]] = [
    # Keyboard sizes
    (re.compile(r"\b(\d+)\s*-\s*taster\b", re.IGNORECASE), r"\1-taster"),
    (re.compile(r"\b(\d+)\s*-\s*keys?\b", re.IGNORECASE), r"\1-taster"),
    (re.compile(r"\b(\d+)\s*%\s*tastatur\b", re.IGNORECASE), r"\1% tastatur"),
    (re.compile(r"\bMini\s+(\d+)\b", re.IGNORECASE), r"\1-taster"),
    # Abbreviations
    (re.compile(r"\bUSB\s*-\s*C\b", re.IGNORECASE), "USB-C"),
    (re.compile(r"\bType\s*-\s*C\b", re.IGNORECASE), "Type-C"),
    (re.compile(r"\bHDTV\b", re.IGNORECASE), "HDMI"),
    (re.compile(r"\bHDMI\s*-\s*kabel\b", re.IGNORECASE), "HDMI-kabel"),
    # Switch types
    (re.compile(r"\b(Blå|Rød|Brun|Grønn)\s+brytere?\b", re.IGNORECASE), r"(\1 brytere)"),
    (re.compile(r"\b(Blue|Red|Brown|Green)\s+switches?\b", re.IGNORECASE), r"(\1 brytere)"),
    # Product type spellings
    (re.compile(r"\bSpilltastatur\b", re.IGNORECASE), "Gaming-tastatur"),
    (re.compile(r"\bSpillmus\b", re.IGNORECASE), "Gaming-mus"),
    (re.compile(r"\bTrådløst\s+tastatur\b", re.IGNORECASE), "Trådløst tastatur"),
    (re.compile(r"\bTrådløs\s+mus\b", re.IGNORECASE), "Trådløs mus"),
    (re.compile(r"\bMekanisk\s+tastatur\b", re.IGNORECASE), "Mekanisk tastatur"),
    (re.compile(r"\bErgonomisk\s+mus\b", re.IGNORECASE), "Ergonomisk mus"),
    (re.compile(r"\bLaderkabel\b", re.IGNORECASE), "Ladekabel"),
    (re.compile(r"\bUSB\s+c\s+til\s+lightning\b", re.IGNORECASE), "USB-C til Lightning"),
    (re.compile(r"\bType\s+c\s+til\s+lightning\b", re.IGNORECASE), "Type-C til Lightning"),
]

# First match wins
PRODUCT_TYPE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("tastatur", ("tastatur", "keyboard")),
    ("mus", ("mus", "mouse")),
    ("lader", ("lader", "charger")),
    ("kabel", ("kabel", "cable")),
    ("brakett", ("brakett", "bracket")),
    ("veske", ("veske", "bag")),
    ("ørepropp", ("ørepropp", "headphone", "earbud")),
    ("lampe", ("lampe", "lamp", "light")),
    ("klokke", ("klokke", "watch")),
    ("headset", ("headset",)),
]

FILLER_WORDS = {"for", "med", "til", "og", "eller", "kompatibel"}
EXTENDED_FILLER_WORDS = FILLER_WORDS | {"kompatibelt", "temu", "norway"}
GENERIC_TITLES = ("kabel", "tastatur", "mus", "lader", "veske", "brakett")

SIZE_PATTERN = re.compile(r"\b(\d+)[\s-]*(taster|%|keys?)\b", re.IGNORECASE)
SWITCH_PATTERN = re.compile(
    r"\b(Blå|Rød|Brun|Grønn|Blue|Red|Brown|Green)\s+brytere?", re.IGNORECASE
)
WATTAGE_PATTERN = re.compile(r"\b(\d+)\s*w\b", re.IGNORECASE)

_MODEL_ID = re.compile(r"\bG\d{12,}\b", re.IGNORECASE)
_FALLBACK_NOISE = re.compile(
    r"\b(Temu\s+Norway|Vietnam|Kinesisk|Cherry\s+kompatibel)\b", re.IGNORECASE
)
_FALLBACK_PHRASES = re.compile(r"\b(For\s+Iphone|For\s+Samsung|Kompatibel\s+med)\b", re.IGNORECASE)


@dataclass
class ProductInfo:
    type: str
    size: Optional[str] = None
    switches: Optional[str] = None
    color: Optional[str] = None


def extract_product_info(title: str) -> ProductInfo:
    """Classify a cleaned title and pull out keyboard size, switches and colour.

    Args:
        title: Title after noise removal and normalisation

    Returns:
        ProductInfo with type "" when no keyword matches
    """
    lower = title.lower()
    product_type = next(
        (
            name
            for name, keywords in PRODUCT_TYPE_KEYWORDS
            if any(keyword in lower for keyword in keywords)
        ),
        "",
    )

    size_match = SIZE_PATTERN.search(title)
    switch_match = SWITCH_PATTERN.search(title)

    return ProductInfo(
        type=product_type,
        size=f"{size_match.group(1)}-taster" if size_match else None,
        switches=switch_match.group(1) if switch_match else None,
        # Only black is stocked
        color="Svart" if "svart" in lower or "black" in lower else None,
    )


def _keyboard_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    original_lower = original.lower()
    parts = [info.size] if info.size else []

    if "mekanisk" in lower or "mechanical" in lower:
        parts.append("Mekanisk")
    elif "gaming" in lower or "spill" in lower or "rgb" in original_lower:
        parts.append("Gaming")
    elif "trådløs" in lower or "wireless" in lower:
        parts.append("Trådløst")
    elif "ergonomisk" in lower or "ergonomic" in lower:
        parts.append("Ergonomisk")
    elif "ultra" in lower or "tynn" in lower or "thin" in lower:
        parts.append("Ultra-tynt")

    is_set = any(
        phrase in original_lower
        for phrase in ("musesett", "keyboard set", "tastatur og mus", "tastatur og musekombo")
    )
    parts.append("Tastatur og Mus" if is_set else "tastatur")

    if any(word in original_lower for word in ("rgb", "lysende", "backlit")):
        parts.append("RGB")
    if any(word in original_lower for word in ("mini", "60%", "shrink")) and not info.size:
        parts.append("Mini")
    if info.switches:
        parts.append(f"({info.switches} brytere)")
    return parts


def _mouse_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    parts = []
    if "trådløs" in lower or "wireless" in lower:
        parts.append("Trådløs")
    if "gaming" in lower or "spill" in lower:
        parts.append("Gaming")
    if "ergonomisk" in lower or "ergonomic" in lower:
        parts.append("Ergonomisk")
    parts.append("mus")
    return parts


def _cable_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    original_lower = original.lower()
    parts = []

    has_usb_c = "usb-c" in lower or "type-c" in lower
    if "lightning" in lower:
        parts.extend(["USB-C" if has_usb_c else "USB", "til Lightning"])
    elif has_usb_c:
        parts.append("USB-C")
    elif "hdmi" in lower or "hdtv" in lower:
        parts.append("HDMI")
    elif "usb" in lower:
        parts.append("USB")

    multi_match = re.search(r"\b(\d+)\s*[-i]\s*1\b", original, re.IGNORECASE)
    if multi_match:
        parts.append(f"{multi_match.group(1)}-i-1")

    if "flettet" in original_lower or "braided" in original_lower:
        parts.append("Flettet")
    if "superlang" in original_lower or "super long" in original_lower:
        parts.append("Superlang")

    if any(word in lower for word in ("lade", "charge", "hurtig")):
        parts.append("Ladekabel")
    elif "data" in lower or "synkron" in lower:
        parts.append("Datakabel")
    else:
        parts.append("kabel")

    # Longest length wins when several are listed
    lengths = [float(m) for m in re.findall(r"\b(\d+\.?\d*)\s*m\b", original, re.IGNORECASE)]
    if lengths:
        if max(lengths) > 0:
            parts.append(f"{max(lengths):g}m")
    else:
        feet_match = re.search(r"\b(\d+\.?\d*)\s*ft\b", original, re.IGNORECASE)
        if feet_match:
            parts.append(f"{float(feet_match.group(1)) * 0.3048:.1f}m")

    power_match = WATTAGE_PATTERN.search(original)
    if power_match:
        parts.append(f"{power_match.group(1)}W")
    return parts


def _charger_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    original_lower = original.lower()
    parts = []

    if "stativ" in lower or "stand" in lower or "dock" in lower:
        parts.append("Laderstativ")
    else:
        # The original may mention USB-C even after cleanup removed it
        if any(word in original_lower for word in ("usb-c", "type-c", "usb c")) or (
            "usb-c" in lower or "type-c" in lower
        ):
            parts.append("USB-C")
        elif "usb" in lower or "usb" in original_lower:
            parts.append("USB")
        if "hurtig" in lower or "fast" in lower or "hurtig" in original_lower:
            parts.append("Hurtiglader")
        else:
            parts.append("Lader")

    power_match = WATTAGE_PATTERN.search(original)
    if power_match:
        parts.append(f"{power_match.group(1)}W")

    port_match = re.search(r"\b(\d+)\s*ports?\b", original, re.IGNORECASE)
    if port_match:
        parts.append(f"{port_match.group(1)} porter")

    if "pd" in original_lower or "power delivery" in original_lower:
        pd_match = re.search(r"\bpd\s*(\d+\.?\d*)\b", original, re.IGNORECASE)
        parts.append(f"PD{pd_match.group(1)}" if pd_match else "PD")
    return parts


def _bag_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    parts = ["Lær"] if "lær" in lower or "leather" in lower else []
    if "skulder" in lower or "shoulder" in lower:
        parts.append("skulderveske")
    elif "hånd" in lower or "hand" in lower:
        parts.append("håndveske")
    else:
        parts.append("veske")
    return parts


def _bracket_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    if "mobil" in lower or "phone" in lower:
        return ["Mobiltelefonbrakett"]
    if "nettbrett" in lower or "tablet" in lower:
        return ["Nettbrettbrakett"]
    return ["Brakett"]


def _earbuds_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    parts = ["Trådløse"] if "trådløs" in lower or "wireless" in lower else []
    parts.append("Ørepropper")
    if "ladeetui" in lower or "charging case" in lower or "case" in lower:
        parts.append("med Ladeetui")
    return parts


def _lamp_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    parts = ["LED"] if "led" in lower else []
    if "bord" in lower or "desk" in lower:
        parts.append("Bordlampe")
    elif "tak" in lower or "ceiling" in lower:
        parts.append("Taklampe")
    else:
        parts.append("Lampe")
    if "justerbar" in lower or "adjustable" in lower:
        parts.append("- Justerbar")
    return parts


def _watch_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    if "smart" in lower:
        return ["Smartklokke"]
    if "fitness" in lower:
        return ["Fitnessklokke"]
    return ["Klokke"]


def _headset_title(improved: str, original: str, info: ProductInfo) -> list[str]:
    lower = improved.lower()
    parts = []
    if "trådløs" in lower or "wireless" in lower:
        parts.append("Trådløst")
    if "gaming" in lower:
        parts.append("Gaming")
    parts.append("Headset")
    return parts


TEMPLATES: dict[str, Callable[[str, str, ProductInfo], list[str]]] = {
    "tastatur": _keyboard_title,
    "mus": _mouse_title,
    "kabel": _cable_title,
    "lader": _charger_title,
    "veske": _bag_title,
    "brakett": _bracket_title,
    "ørepropp": _earbuds_title,
    "lampe": _lamp_title,
    "klokke": _watch_title,
    "headset": _headset_title,
}


def _lightly_cleaned(original: str) -> str:
    text = _MODEL_ID.sub("", original)
    text = _FALLBACK_NOISE.sub("", text)
    return _FALLBACK_PHRASES.sub("", text)


def _fallback_title(original: str) -> str:
    """First six non-filler words of the lightly cleaned original."""
    cleaned = re.sub(r"\s+", " ", _lightly_cleaned(original)).strip()
    words = [w for w in cleaned.split(" ") if w.lower() not in FILLER_WORDS][:6]
    title = " ".join(words)

    if len(title) < 5:
        minimal = re.sub(r"\bTemu\s+Norway\b", "", _MODEL_ID.sub("", original), flags=re.IGNORECASE)
        title = " ".join(minimal.split(" ")[:6])
    return title


def _remove_adjacent_duplicates(title: str) -> str:
    words = title.split(" ")
    kept = [word for i, word in enumerate(words) if i == 0 or word.lower() != words[i - 1].lower()]
    return " ".join(kept)


def _is_too_generic(title: str) -> bool:
    lower = title.lower()
    word_count = len(title.split(" "))
    return any(
        lower == generic or (lower.startswith(generic + " ") and word_count < 3)
        for generic in GENERIC_TITLES
    )


def _enrich_generic(title: str, original: str, info: ProductInfo) -> str:
    """Add distinguishing words from the original to a one-noun title."""
    candidates = [
        w
        for w in _lightly_cleaned(original).split(" ")
        if w.lower() not in EXTENDED_FILLER_WORDS
        and len(w) > 2
        and not re.fullmatch(r"g\d+", w.lower())
    ][:6]

    existing = title.lower().split(" ")
    additional = [
        w
        for w in candidates
        if not any(ex == w.lower() or ex in w.lower() or w.lower() in ex for ex in existing)
    ][:4]
    if additional:
        title = re.sub(r"\s+", " ", f"{title} {' '.join(additional)}").strip()

    if len(title.split(" ")) >= 3:
        return title

    original_lower = original.lower()
    if info.type == "kabel":
        if "flettet" in original_lower or "braided" in original_lower:
            title = title.replace("kabel", "Flettet kabel", 1)
        if "superlang" in original_lower or "super long" in original_lower:
            title = f"Superlang {title}"
        if "datasynkron" in original_lower or "data sync" in original_lower:
            title = title.replace("kabel", "Datakabel", 1)

    if info.type == "tastatur" and not info.size:
        size_match = SIZE_PATTERN.search(original)
        if size_match:
            title = f"{size_match.group(1)}-taster {title}"

    return title


def improve_title(original: str) -> str:
    """Turn a noisy supplier title into a short Norwegian catalog title.

    Args:
        original: Raw scraped title

    Returns:
        Improved title; blank input is returned unchanged

    Examples:
        >>> improve_title("108-key G123456789012 Mekanisk RGB Gaming Tastatur Vietnam")
        '108-taster Mekanisk tastatur RGB'
    """
    if not original or not original.strip():
        return original

    improved = original.strip()
    for pattern, replacement in REMOVE_PATTERNS:
        improved = pattern.sub(replacement, improved)
    for pattern, replacement in NORMALIZE_PATTERNS:
        improved = pattern.sub(replacement, improved)

    info = extract_product_info(improved)
    template = TEMPLATES.get(info.type)
    if template is not None:
        title = " ".join(template(improved, original, info))
    else:
        words = [w for w in improved.split(" ") if w.lower() not in EXTENDED_FILLER_WORDS]
        title = " ".join(words[:8])

    title = re.sub(r"\s+", " ", title)
    title = re.sub(r"\s*,\s*,", ",", title)
    title = re.sub(r"\s*\(\s*\)", "", title).strip()
    if title:
        title = title[0].upper() + title[1:]

    if len(title) < 5 or len(title.split(" ")) < 2:
        title = _fallback_title(original)

    title = _remove_adjacent_duplicates(title)

    if _is_too_generic(title):
        title = _enrich_generic(title, original, info)

    return title
