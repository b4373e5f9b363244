"""
Curated Bandung hotspots bundled with the app.

Presets are always verified and always win an id collision against
remote or cached records. Coordinates are approximate entrance points.
"""

from typing import Dict, List, Tuple

from hotspots import Category, PointOfInterest, Provenance


CATEGORY_LABELS: Dict[Category, str] = {
    Category.CAMPUS: "Campus",
    Category.SCHOOL: "School",
    Category.MALL: "Mall",
    Category.FOODCOURT: "Food & Culinary",
    Category.STATION: "Station & Terminal",
    Category.HOSPITAL: "Hospital",
    Category.OFFICE: "Office District",
    Category.TOURISM: "Tourism",
    Category.GENERAL: "Other",
}

AREA_LABELS: Dict[str, str] = {
    "dago": "Dago",
    "setiabudi": "Setiabudi",
    "sukajadi": "Sukajadi",
    "pusat_kota": "City Center",
    "buah_batu": "Buah Batu",
    "kiaracondong": "Kiaracondong",
    "bojongsoang": "Bojongsoang",
    "gatot_subroto": "Gatot Subroto",
}


def _preset(id, name, lat, lng, category, peak_hours, area, upvotes,
            description=None, tips=None, is_safe_zone=True):
    return PointOfInterest(
        id=id,
        name=name,
        description=description,
        latitude=lat,
        longitude=lng,
        category=category,
        provenance=Provenance.PRESET,
        peak_hours=tuple(peak_hours),
        is_safe_zone=is_safe_zone,
        verified=True,
        is_preset=True,
        upvotes=upvotes,
        tips=tips,
        area=area,
    )


PRESET_HOTSPOTS: Tuple[PointOfInterest, ...] = (
    # --- Campus ---
    _preset("campus-itb", "ITB Ganesha", -6.8915, 107.6107, Category.CAMPUS,
            ["07:00-09:00", "11:30-13:00", "16:00-18:00"], "dago", 128,
            description="Main gate on Jl. Ganesha",
            tips="Wait near the north gate; the south side is one-way."),
    _preset("campus-unpad-dipatiukur", "Unpad Dipatiukur", -6.8932, 107.6166, Category.CAMPUS,
            ["07:00-09:00", "15:00-17:00"], "dago", 94),
    _preset("campus-upi", "UPI Setiabudi", -6.8606, 107.5937, Category.CAMPUS,
            ["06:30-08:30", "15:30-17:30"], "setiabudi", 71),
    _preset("campus-telkom", "Telkom University", -6.9730, 107.6305, Category.CAMPUS,
            ["06:30-08:00", "12:00-13:00", "16:00-18:00"], "bojongsoang", 83),

    # --- Mall ---
    _preset("mall-pvj", "Paris Van Java", -6.8891, 107.5962, Category.MALL,
            ["11:00-14:00", "17:00-21:00"], "sukajadi", 156,
            tips="Pick-up bay is at the Lobby Sky entrance."),
    _preset("mall-tsm", "Trans Studio Mall", -6.9261, 107.6364, Category.MALL,
            ["11:00-14:00", "18:00-21:30"], "gatot_subroto", 112),
    _preset("mall-bip", "Bandung Indah Plaza", -6.9086, 107.6108, Category.MALL,
            ["12:00-14:00", "17:00-20:00"], "pusat_kota", 67),
    _preset("mall-ciwalk", "Cihampelas Walk", -6.8939, 107.6043, Category.MALL,
            ["11:00-14:00", "17:00-21:00"], "sukajadi", 88),

    # --- Station / terminal ---
    _preset("station-bandung", "Stasiun Bandung", -6.9141, 107.6024, Category.STATION,
            ["05:00-08:00", "16:00-20:00"], "pusat_kota", 173,
            tips="North exit (Kebon Kawung) has the official pick-up zone."),
    _preset("station-kiaracondong", "Stasiun Kiaracondong", -6.9250, 107.6460, Category.STATION,
            ["05:00-07:30", "17:00-20:00"], "kiaracondong", 97),
    _preset("station-leuwipanjang", "Terminal Leuwipanjang", -6.9458, 107.5950, Category.STATION,
            ["05:00-09:00", "15:00-19:00"], "buah_batu", 54),

    # --- Food ---
    _preset("food-paskal", "Paskal Food Market", -6.9155, 107.5945, Category.FOODCOURT,
            ["18:00-23:00"], "pusat_kota", 101),
    _preset("food-braga", "Jalan Braga", -6.9175, 107.6093, Category.FOODCOURT,
            ["11:00-14:00", "18:00-22:00"], "pusat_kota", 79),
    _preset("food-burangrang", "Kuliner Burangrang", -6.9265, 107.6197, Category.FOODCOURT,
            ["11:00-13:30", "18:00-21:00"], "buah_batu", 46),

    # --- Hospital ---
    _preset("hospital-rshs", "RS Hasan Sadikin", -6.8967, 107.5989, Category.HOSPITAL,
            ["07:00-12:00", "14:00-17:00"], "sukajadi", 62),
    _preset("hospital-borromeus", "RS Santo Borromeus", -6.8937, 107.6132, Category.HOSPITAL,
            ["07:00-11:00", "16:00-18:00"], "dago", 41),

    # --- School ---
    _preset("school-sman3", "SMAN 3 Bandung", -6.9077, 107.6132, Category.SCHOOL,
            ["06:00-07:00", "14:00-15:30"], "pusat_kota", 38),
    _preset("school-taruna-bakti", "SMA Taruna Bakti", -6.9050, 107.6218, Category.SCHOOL,
            ["06:00-07:00", "13:30-15:00"], "pusat_kota", 29),

    # --- Tourism ---
    _preset("tourism-gedung-sate", "Gedung Sate", -6.9025, 107.6188, Category.TOURISM,
            ["08:00-11:00", "15:00-18:00"], "pusat_kota", 58),
    _preset("tourism-alun-alun", "Alun-alun Bandung", -6.9218, 107.6071, Category.TOURISM,
            ["09:00-12:00", "16:00-21:00"], "pusat_kota", 73),
    _preset("tourism-tahura", "Tahura Djuanda", -6.8570, 107.6293, Category.TOURISM,
            ["08:00-15:00"], "dago", 35),

    # --- Office ---
    _preset("office-asia-afrika", "Asia Afrika Office Row", -6.9213, 107.6108, Category.OFFICE,
            ["07:00-08:30", "16:30-18:30"], "pusat_kota", 47),
    _preset("office-gatsu", "Gatot Subroto Offices", -6.9280, 107.6300, Category.OFFICE,
            ["07:00-09:00", "16:00-19:00"], "gatot_subroto", 33),

    # --- Caution zones ---
    _preset("caution-kebon-kalapa", "Kebon Kalapa Terminal Area", -6.9287, 107.6044, Category.GENERAL,
            [], "pusat_kota", 12, is_safe_zone=False,
            description="Frequent disputes with informal drivers; avoid waiting here."),
    _preset("caution-soekarno-hatta", "Soekarno-Hatta Night Stretch", -6.9408, 107.6232, Category.GENERAL,
            [], "buah_batu", 9, is_safe_zone=False,
            description="Poorly lit after 22:00."),
)


def presets_by_category(category) -> List[PointOfInterest]:
    cat = Category.parse(category)
    return [p for p in PRESET_HOTSPOTS if p.category is cat]
