"""
Block type registry for the page builder.

Every PageBlock.type must be one of BLOCK_TYPES. BLOCK_DEFINITIONS holds the
editor metadata (label, category, icon, description) and the content and
style defaults used when a block is added without explicit values.
"""

import copy

BLOCK_CATEGORIES = {
    "text": "Texte & Contenu",
    "media": "Médias",
    "layout": "Mise en page",
    "interactive": "Interactif",
    "data": "Données",
    "embed": "Intégrations",
    "custom": "Composants",
}

BLOCK_TYPES = [
    # Text & content
    "HERO",
    "TEXT",
    "HEADING",
    "PARAGRAPH",
    "QUOTE",
    "LIST",
    # Media
    "IMAGE",
    "GALLERY",
    "VIDEO",
    "FILE",
    # Layout
    "COLUMNS",
    "GRID",
    "SPACER",
    "DIVIDER",
    "CONTAINER",
    # Interactive
    "BUTTON",
    "BUTTON_GROUP",
    "LINK_BLOCK",
    "ACCORDION",
    "TABS",
    # Data
    "TABLE",
    "STATS",
    "TIMELINE",
    "CARDS",
    # Embeds
    "IFRAME",
    "MAP",
    "SOCIAL",
    # Composite components
    "TEAM",
    "TESTIMONIALS",
    "PRICING",
    "FAQ",
    "CONTACT_FORM",
    "NEWSLETTER",
    "FEATURES",
    # Primitives
    "INFO_BOX",
    "HOURS_TABLE",
    "SERVICES_LIST",
    "CTA_CARD",
    "REVIEW_BADGE",
    "LOCATION_CARD",
    "ICON_FEATURE",
    # Store pages
    "STORE_LIST",
    "STORE_HERO",
    "STORE_CONTACT",
    "STORE_SERVICES",
    "STORE_CTA",
    "STORE_REVIEWS",
    "STORE_MAP",
    "STORE_LAYOUT",
]

BLOCK_TYPE_CHOICES = [(block_type, block_type.replace("_", " ").title()) for block_type in BLOCK_TYPES]

_PADDING_SM = {"paddingTop": "sm", "paddingBottom": "sm"}
_PADDING_MD = {"paddingTop": "md", "paddingBottom": "md"}
_PADDING_LG = {"paddingTop": "lg", "paddingBottom": "lg"}


def _definition(block_type, label, category, icon, description, content, styles):
    return {
        "type": block_type,
        "label": label,
        "category": category,
        "icon": icon,
        "description": description,
        "default_content": content,
        "default_styles": styles,
    }


BLOCK_DEFINITIONS = {
    definition["type"]: definition
    for definition in [
        _definition(
            "HERO",
            "Hero",
            "text",
            "Layout",
            "Grande section d'en-tête avec image de fond",
            {"title": "Titre de la page", "subtitle": "Sous-titre", "height": "large", "alignment": "CENTER"},
            {"paddingTop": "xl", "paddingBottom": "xl"},
        ),
        _definition(
            "TEXT",
            "Texte riche",
            "text",
            "Type",
            "Bloc de texte formaté",
            {"html": "<p>Ajoutez votre contenu ici...</p>"},
            {"paddingTop": "md", "paddingBottom": "md", "containerWidth": "MEDIUM"},
        ),
        _definition(
            "HEADING",
            "Titre",
            "text",
            "Heading",
            "Titre seul (H1-H6)",
            {"text": "Nouveau titre", "level": "h2"},
            {"paddingTop": "md", "paddingBottom": "sm"},
        ),
        _definition(
            "PARAGRAPH",
            "Paragraphe",
            "text",
            "AlignLeft",
            "Paragraphe de texte simple",
            {"text": "Votre texte ici..."},
            _PADDING_SM,
        ),
        _definition(
            "QUOTE",
            "Citation",
            "text",
            "Quote",
            "Citation avec attribution",
            {"text": "Votre citation...", "author": "Auteur"},
            _PADDING_MD,
        ),
        _definition(
            "LIST",
            "Liste",
            "text",
            "List",
            "Liste à puces ou numérotée",
            {"items": ["Élément 1", "Élément 2", "Élément 3"], "style": "bullet"},
            _PADDING_SM,
        ),
        _definition(
            "IMAGE",
            "Image",
            "media",
            "Image",
            "Image avec légende optionnelle",
            {"src": "", "alt": "", "objectFit": "cover"},
            _PADDING_MD,
        ),
        _definition(
            "GALLERY",
            "Galerie",
            "media",
            "Images",
            "Galerie d'images",
            {
                "images": [
                    {"src": "/images/placeholder.svg", "alt": f"Image {index}", "caption": ""}
                    for index in range(1, 4)
                ],
                "columns": 3,
                "gap": "medium",
                "lightbox": True,
            },
            _PADDING_MD,
        ),
        _definition(
            "VIDEO",
            "Vidéo",
            "media",
            "Video",
            "Vidéo YouTube, Vimeo ou fichier",
            {"type": "youtube", "url": "", "controls": True},
            _PADDING_MD,
        ),
        _definition(
            "FILE",
            "Fichier",
            "media",
            "FileDown",
            "Fichier téléchargeable",
            {"name": "", "url": ""},
            _PADDING_SM,
        ),
        _definition(
            "COLUMNS",
            "Colonnes",
            "layout",
            "Columns",
            "Mise en page multi-colonnes",
            {
                "columns": [{"width": 50, "blocks": []}, {"width": 50, "blocks": []}],
                "gap": "medium",
                "stackOnMobile": True,
            },
            _PADDING_MD,
        ),
        _definition(
            "GRID",
            "Grille",
            "layout",
            "Grid3x3",
            "Grille d'éléments",
            {
                "columns": 3,
                "gap": "medium",
                "items": [
                    {"title": f"Élément {index}", "description": "Description de l'élément", "image": ""}
                    for index in range(1, 4)
                ],
            },
            _PADDING_MD,
        ),
        _definition("SPACER", "Espacement", "layout", "MoveVertical", "Espace vertical", {"height": "md"}, {}),
        _definition(
            "DIVIDER",
            "Séparateur",
            "layout",
            "Minus",
            "Ligne de séparation horizontale",
            {"style": "solid", "width": "medium"},
            _PADDING_MD,
        ),
        _definition(
            "CONTAINER",
            "Conteneur",
            "layout",
            "Square",
            "Conteneur avec fond personnalisable",
            {"blocks": [], "width": "WIDE"},
            _PADDING_LG,
        ),
        _definition(
            "BUTTON",
            "Bouton",
            "interactive",
            "MousePointer",
            "Bouton d'action",
            {"text": "Cliquez ici", "url": "#", "variant": "primary", "size": "md", "borderRadius": "md"},
            _PADDING_SM,
        ),
        _definition(
            "BUTTON_GROUP",
            "Groupe de boutons",
            "interactive",
            "LayoutGrid",
            "Plusieurs boutons côte à côte",
            {
                "buttons": [
                    {"label": "Bouton 1", "href": "#", "variant": "primary"},
                    {"label": "Bouton 2", "href": "#", "variant": "outline"},
                ],
                "alignment": "center",
                "gap": "md",
                "direction": "horizontal",
                "stackOnMobile": True,
            },
            _PADDING_SM,
        ),
        _definition(
            "LINK_BLOCK",
            "Bloc lien",
            "interactive",
            "ExternalLink",
            "Lien avec aperçu",
            {
                "title": "En savoir plus",
                "description": "Cliquez pour découvrir notre page",
                "url": "#",
                "newTab": False,
            },
            _PADDING_SM,
        ),
        _definition(
            "ACCORDION",
            "Accordéon",
            "interactive",
            "ChevronDown",
            "Sections pliables",
            {
                "items": [
                    {
                        "title": "Comment prendre rendez-vous ?",
                        "content": "Vous pouvez prendre rendez-vous en ligne ou par téléphone.",
                        "defaultOpen": True,
                    },
                    {
                        "title": "Quels modes de paiement acceptez-vous ?",
                        "content": "Nous acceptons les cartes bancaires, espèces et chèques.",
                    },
                ],
                "allowMultiple": False,
                "style": "default",
            },
            _PADDING_MD,
        ),
        _definition(
            "TABS",
            "Onglets",
            "interactive",
            "PanelTop",
            "Contenu à onglets",
            {
                "tabs": [
                    {"label": "Verres", "content": "Découvrez notre gamme de verres optiques et solaires.", "icon": "eye"},
                    {"label": "Montures", "content": "Plus de 500 montures de grandes marques.", "icon": "glasses"},
                    {"label": "Lentilles", "content": "Toutes les marques de lentilles de contact.", "icon": "circle"},
                ],
                "variant": "line",
            },
            _PADDING_MD,
        ),
        _definition(
            "TABLE",
            "Tableau",
            "data",
            "Table",
            "Tableau de données",
            {
                "headers": ["Colonne 1", "Colonne 2", "Colonne 3"],
                "rows": [["Donnée 1", "Donnée 2", "Donnée 3"]],
                "striped": True,
            },
            _PADDING_MD,
        ),
        _definition(
            "STATS",
            "Statistiques",
            "data",
            "BarChart2",
            "Chiffres clés",
            {
                "stats": [
                    {"value": "25+", "label": "Années d'expérience"},
                    {"value": "5000+", "label": "Clients satisfaits"},
                    {"value": "500+", "label": "Montures"},
                    {"value": "4.9", "label": "Note clients", "suffix": "/5"},
                ],
                "columns": 4,
                "style": "default",
            },
            _PADDING_LG,
        ),
        _definition(
            "TIMELINE",
            "Timeline",
            "data",
            "GitBranch",
            "Chronologie",
            {
                "items": [
                    {"date": "1998", "title": "Création", "description": "Ouverture de notre première boutique."},
                    {"date": "2010", "title": "Expansion", "description": "Ouverture de 3 nouvelles boutiques."},
                ],
                "layout": "vertical",
            },
            _PADDING_LG,
        ),
        _definition(
            "CARDS",
            "Cartes",
            "data",
            "LayoutGrid",
            "Grille de cartes",
            {
                "cards": [
                    {"title": f"Service {index}", "description": "Description du service offert.", "image": ""}
                    for index in range(1, 4)
                ],
                "columns": 3,
                "variant": "default",
                "cardStyle": "elevated",
                "showImage": True,
                "showDescription": True,
            },
            _PADDING_MD,
        ),
        _definition("IFRAME", "Iframe", "embed", "Frame", "Contenu externe intégré", {"url": "", "height": 400}, _PADDING_MD),
        _definition(
            "MAP", "Carte", "embed", "MapPin", "Google Maps", {"address": "", "zoom": 14, "height": 400}, _PADDING_MD
        ),
        _definition(
            "SOCIAL",
            "Réseau social",
            "embed",
            "Share2",
            "Intégration réseaux sociaux",
            {"platform": "instagram", "url": ""},
            _PADDING_MD,
        ),
        _definition(
            "TEAM",
            "Équipe",
            "custom",
            "Users",
            "Présentation d'équipe",
            {
                "members": [
                    {"name": "Jean Dupont", "role": "Directeur", "image": "", "bio": "Passionné par l'optique depuis 20 ans."},
                    {"name": "Marie Martin", "role": "Opticienne", "image": "", "bio": "Spécialiste en contactologie."},
                ],
                "columns": 3,
                "variant": "card",
                "showBio": True,
                "showSocial": False,
            },
            _PADDING_LG,
        ),
        _definition(
            "TESTIMONIALS",
            "Témoignages",
            "custom",
            "MessageSquare",
            "Avis clients",
            {
                "testimonials": [
                    {
                        "text": "Un service exceptionnel et des conseils personnalisés.",
                        "author": "Sophie L.",
                        "role": "Cliente fidèle",
                        "rating": 5,
                    },
                ],
                "layout": "grid",
                "columns": 2,
                "showRating": True,
                "showImage": False,
            },
            _PADDING_LG,
        ),
        _definition(
            "PRICING",
            "Tarifs",
            "custom",
            "DollarSign",
            "Tableau de prix",
            {
                "plans": [
                    {
                        "name": "Essentiel",
                        "price": "29€",
                        "period": "mois",
                        "description": "Pour débuter",
                        "features": ["Verres simples", "Monture basique", "Garantie 1 an"],
                        "buttonText": "Choisir",
                        "buttonUrl": "#",
                    },
                    {
                        "name": "Confort",
                        "price": "49€",
                        "period": "mois",
                        "description": "Le plus populaire",
                        "features": ["Verres progressifs", "Monture premium", "Garantie 2 ans"],
                        "highlighted": True,
                        "buttonText": "Choisir",
                        "buttonUrl": "#",
                    },
                ],
                "columns": 3,
            },
            _PADDING_LG,
        ),
        _definition(
            "FAQ",
            "FAQ",
            "custom",
            "HelpCircle",
            "Questions fréquentes",
            {
                "questions": [
                    {
                        "question": "Quels sont vos horaires d'ouverture ?",
                        "answer": "Nous sommes ouverts du lundi au samedi de 9h à 19h.",
                    },
                    {
                        "question": "Acceptez-vous la carte vitale ?",
                        "answer": "Oui, nous travaillons avec toutes les mutuelles.",
                    },
                ],
                "layout": "accordion",
                "allowMultiple": False,
                "showIcon": True,
            },
            _PADDING_LG,
        ),
        _definition(
            "CONTACT_FORM",
            "Formulaire de contact",
            "custom",
            "Mail",
            "Formulaire de contact",
            {
                "title": "Contactez-nous",
                "fields": [
                    {"type": "text", "name": "name", "label": "Nom", "required": True},
                    {"type": "email", "name": "email", "label": "Email", "required": True},
                    {"type": "textarea", "name": "message", "label": "Message", "required": True},
                ],
                "submitText": "Envoyer",
            },
            _PADDING_LG,
        ),
        _definition(
            "NEWSLETTER",
            "Newsletter",
            "custom",
            "Send",
            "Inscription newsletter",
            {"title": "Restez informé", "buttonText": "S'inscrire"},
            _PADDING_MD,
        ),
        _definition(
            "FEATURES",
            "Fonctionnalités",
            "custom",
            "Star",
            "Liste de fonctionnalités",
            {
                "features": [
                    {"icon": "eye", "title": "Examen de vue", "description": "Un examen complet pour déterminer votre correction."},
                    {"icon": "glasses", "title": "Large choix", "description": "Plus de 500 montures de grandes marques."},
                    {"icon": "shield", "title": "Garantie", "description": "Tous nos produits sont garantis 2 ans."},
                ],
                "columns": 3,
                "layout": "cards",
                "iconStyle": "circle",
            },
            _PADDING_LG,
        ),
        _definition(
            "INFO_BOX",
            "Info box",
            "data",
            "Info",
            "Boîte d'information avec icône (adresse, téléphone, email...)",
            {"icon": "info", "title": "Titre", "content": "Contenu de l'information", "variant": "default"},
            _PADDING_SM,
        ),
        _definition(
            "HOURS_TABLE",
            "Horaires",
            "data",
            "Clock",
            "Tableau des horaires d'ouverture",
            {
                "title": "Horaires d'ouverture",
                "hours": {
                    "Lundi": "9h00 - 19h00",
                    "Mardi": "9h00 - 19h00",
                    "Mercredi": "9h00 - 19h00",
                    "Jeudi": "9h00 - 19h00",
                    "Vendredi": "9h00 - 19h00",
                    "Samedi": "9h00 - 18h00",
                    "Dimanche": "Fermé",
                },
                "showIcon": True,
                "highlightToday": True,
                "variant": "table",
            },
            _PADDING_MD,
        ),
        _definition(
            "SERVICES_LIST",
            "Liste de services",
            "data",
            "CheckSquare",
            "Liste de services avec puces stylisées",
            {"title": "Nos services", "services": ["Service 1", "Service 2", "Service 3"], "columns": 2, "variant": "bullets"},
            _PADDING_MD,
        ),
        _definition(
            "CTA_CARD",
            "Carte CTA",
            "interactive",
            "MousePointerClick",
            "Carte d'appel à l'action avec boutons",
            {
                "title": "Prendre rendez-vous",
                "primaryButton": {"label": "Réserver en ligne", "url": "#", "icon": "calendar"},
                "variant": "default",
            },
            _PADDING_MD,
        ),
        _definition(
            "REVIEW_BADGE",
            "Badge avis",
            "data",
            "Star",
            "Badge de notation et avis clients",
            {"title": "Avis clients", "rating": 4.8, "reviewCount": 120, "showStars": True, "variant": "default"},
            _PADDING_MD,
        ),
        _definition(
            "LOCATION_CARD",
            "Carte localisation",
            "embed",
            "MapPin",
            "Carte de localisation avec lien Google Maps",
            {"title": "Nous trouver", "address": "Adresse du lieu", "showPreview": True, "variant": "default"},
            _PADDING_MD,
        ),
        _definition(
            "ICON_FEATURE",
            "Feature icône",
            "data",
            "Sparkles",
            "Fonctionnalité avec icône, titre et description",
            {
                "icon": "star",
                "title": "Fonctionnalité",
                "description": "Description de la fonctionnalité",
                "iconBackground": True,
                "variant": "default",
            },
            _PADDING_SM,
        ),
        # Store blocks are generated by the store page tooling and carry no editor defaults
        _definition("STORE_LIST", "Liste des magasins", "custom", "Store", "Liste des magasins", {}, {}),
        _definition("STORE_HERO", "En-tête magasin", "custom", "Store", "En-tête de page magasin", {}, {}),
        _definition("STORE_CONTACT", "Contact magasin", "custom", "Phone", "Coordonnées du magasin", {}, {}),
        _definition("STORE_SERVICES", "Services magasin", "custom", "CheckSquare", "Services du magasin", {}, {}),
        _definition("STORE_CTA", "CTA magasin", "custom", "MousePointerClick", "Appel à l'action magasin", {}, {}),
        _definition("STORE_REVIEWS", "Avis magasin", "custom", "Star", "Avis clients du magasin", {}, {}),
        _definition("STORE_MAP", "Carte magasin", "custom", "MapPin", "Plan d'accès au magasin", {}, {}),
        _definition("STORE_LAYOUT", "Page magasin", "custom", "Layout", "Mise en page complète d'un magasin", {}, {}),
    ]
}


def is_valid_block_type(block_type):
    return block_type in BLOCK_DEFINITIONS


def get_block_definition(block_type):
    """Return the registry entry for ``block_type`` or None when unknown."""
    return BLOCK_DEFINITIONS.get(block_type)


def get_default_content(block_type):
    definition = BLOCK_DEFINITIONS.get(block_type)
    return copy.deepcopy(definition["default_content"]) if definition else {}


def get_default_styles(block_type):
    definition = BLOCK_DEFINITIONS.get(block_type)
    return copy.deepcopy(definition["default_styles"]) if definition else {}


def get_definitions_by_category():
    """Group editor definitions by category, in category display order."""
    grouped = {category: [] for category in BLOCK_CATEGORIES}
    for block_type in BLOCK_TYPES:
        definition = BLOCK_DEFINITIONS[block_type]
        grouped[definition["category"]].append(definition)
    return grouped
