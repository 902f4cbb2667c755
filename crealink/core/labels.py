"""Display labels for the expertise and creator codes stored on profiles."""

CREATOR_TYPES = {
    "gaming": "Gaming",
    "lifestyle": "Lifestyle",
    "education": "Éducation",
    "entertainment": "Divertissement",
    "tech": "Tech",
    "beauty": "Beauté & Mode",
    "food": "Cuisine",
    "fitness": "Sport & Fitness",
    "business": "Business",
    "art": "Art & Créativité",
    "travel": "Voyage",
    "music": "Musique",
}

CREATOR_SUB_TYPES = {
    "gaming": {
        "gameplay": "Gameplay",
        "esport": "Esport",
        "gaming_news": "Actualités Gaming",
        "speedrun": "Speedrun",
        "retrogaming": "Retrogaming",
        "gaming_tips": "Guides & Astuces",
        "gaming_entertainment": "Gaming Entertainment",
        "gaming_reviews": "Tests & Reviews",
    },
    "lifestyle": {
        "daily_vlog": "Vlog Quotidien",
        "fashion": "Mode",
        "luxury": "Luxe",
        "minimalism": "Minimalisme",
        "sustainable": "Mode de vie durable",
        "family": "Famille",
        "home_decor": "Décoration",
        "self_improvement": "Développement personnel",
    },
    "education": {
        "tutorials": "Tutoriels",
        "science": "Sciences",
        "history": "Histoire",
        "languages": "Langues",
        "programming": "Programmation",
        "academic": "Scolaire",
        "professional": "Formation professionnelle",
        "personal_dev": "Développement personnel",
    },
    "entertainment": {
        "comedy": "Humour",
        "sketches": "Sketches",
        "reactions": "Réactions",
        "challenges": "Défis",
        "pranks": "Caméras cachées",
        "talk_show": "Talk-show",
        "web_series": "Séries Web",
        "storytelling": "Storytelling",
    },
    "tech": {
        "tech_reviews": "Tests Tech",
        "tech_news": "Actualités Tech",
        "tutorials_tech": "Tutoriels Tech",
        "programming": "Programmation",
        "gadgets": "Gadgets",
        "mobile": "Mobile",
        "gaming_hardware": "Hardware Gaming",
        "smart_home": "Maison connectée",
    },
    "beauty": {
        "makeup": "Maquillage",
        "skincare": "Soins de la peau",
        "fashion_style": "Style vestimentaire",
        "hair": "Coiffure",
        "luxury_fashion": "Mode de luxe",
        "sustainable_fashion": "Mode durable",
        "mens_fashion": "Mode masculine",
        "beauty_tips": "Conseils beauté",
    },
    "food": {
        "cooking": "Cuisine",
        "baking": "Pâtisserie",
        "healthy": "Cuisine healthy",
        "restaurant": "Restaurants & Tests",
        "international": "Cuisine du monde",
        "drinks": "Boissons & Cocktails",
        "vegan": "Cuisine végétale",
        "food_science": "Science culinaire",
    },
    "fitness": {
        "workout": "Entraînement",
        "yoga": "Yoga",
        "nutrition": "Nutrition",
        "crossfit": "CrossFit",
        "bodybuilding": "Musculation",
        "cardio": "Cardio",
        "sports_specific": "Sports spécifiques",
        "wellness": "Bien-être",
    },
    "business": {
        "entrepreneurship": "Entrepreneuriat",
        "marketing": "Marketing",
        "finance": "Finance",
        "crypto": "Crypto & Web3",
        "career": "Carrière",
        "startup": "Startup",
        "investing": "Investissement",
        "ecommerce": "E-commerce",
    },
    "art": {
        "digital_art": "Art digital",
        "traditional_art": "Art traditionnel",
        "animation": "Animation",
        "crafts": "DIY & Artisanat",
        "music_creation": "Création musicale",
        "photography": "Photographie",
        "design": "Design",
        "art_tips": "Conseils artistiques",
    },
    "travel": {
        "vlog_travel": "Vlog voyage",
        "adventure": "Aventure",
        "luxury_travel": "Voyage de luxe",
        "budget_travel": "Voyage économique",
        "food_travel": "Tourisme culinaire",
        "cultural": "Découverte culturelle",
        "digital_nomad": "Digital Nomad",
        "travel_tips": "Conseils voyage",
    },
    "music": {
        "covers": "Reprises",
        "original": "Musique originale",
        "music_production": "Production musicale",
        "instrument": "Apprentissage instrument",
        "music_review": "Critique musicale",
        "music_news": "Actualités musicales",
        "dj": "DJ & Mix",
        "music_theory": "Théorie musicale",
    },
}

AUDIENCE_RANGES = {
    "micro": "1K-10K abonnés",
    "small": "10K-50K abonnés",
    "mid": "50K-100K abonnés",
    "large": "100K-500K abonnés",
    "xl": "500K-1M abonnés",
    "xxl": "+1M abonnés",
}

EXPERT_TYPES = {
    "editor": "Monteur",
    "designer": "Designer",
    "thumbnailMaker": "Miniaturiste",
    "soundDesigner": "Sound Designer",
    "motionDesigner": "Motion Designer",
    "videoEditor": "Réalisateur",
    "photographer": "Photographe",
    "colorist": "Coloriste",
    "writer": "Rédacteur",
    "developer": "Développeur",
    "marketing": "Marketing",
    "other": "Autre",
}

EXPERT_SUB_TYPES = {
    "editor": {
        "shorts": "Monteur Shorts/TikTok",
        "youtube": "Monteur YouTube",
        "documentary": "Monteur Documentaire",
        "gaming": "Monteur Gaming",
        "corporate": "Monteur Corporate",
    },
    "designer": {
        "logo": "Logo Designer",
        "branding": "Branding Designer",
        "ui": "UI Designer",
        "illustration": "Illustrateur",
    },
    "thumbnailMaker": {
        "youtube": "Miniatures YouTube",
        "gaming": "Miniatures Gaming",
        "lifestyle": "Miniatures Lifestyle",
    },
    "soundDesigner": {
        "music": "Compositeur",
        "mixing": "Mixage Audio",
        "voiceover": "Voice Over",
    },
    "motionDesigner": {
        "2d": "Motion Design 2D",
        "3d": "Motion Design 3D",
        "vfx": "VFX",
    },
    "videoEditor": {
        "commercial": "Publicités",
        "music": "Clips Musicaux",
        "corporate": "Vidéos Corporate",
    },
    "photographer": {
        "portrait": "Portrait",
        "event": "Événementiel",
        "product": "Produit",
    },
    "colorist": {
        "film": "Film",
        "commercial": "Publicité",
        "tv": "Télévision",
    },
}


def creator_type_label(creator_type: str) -> str:
    return CREATOR_TYPES.get(creator_type, creator_type)


def creator_sub_type_label(creator_type: str, sub_type: str) -> str:
    return CREATOR_SUB_TYPES.get(creator_type, {}).get(sub_type, sub_type)


def audience_range_label(audience_range: str) -> str:
    return AUDIENCE_RANGES.get(audience_range, audience_range)


def expert_type_label(expert_type: str) -> str:
    return EXPERT_TYPES.get(expert_type, expert_type)


def expert_sub_type_label(expert_type: str, sub_type: str) -> str:
    return EXPERT_SUB_TYPES.get(expert_type, {}).get(sub_type, sub_type)
