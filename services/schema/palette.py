# services/schema/palette.py
from typing import List

# Indexed by cluster number; shared by the graph, line chart, table and bar chart
# so a topic keeps one color across all panels.
LLM_COLORS: List[str] = [
    "#c084fc",
    "#60a5fa",
    "#4ade80",
    "#fb923c",
    "#f87171",
    "#67e8f9",
    "#a78bfa",
    "#fbbf24",
]

PSYCH_COLORS: List[str] = [
    "#BD463D", # Social-Clinical
    "#D38341", # Education
    "#DDB405", # Language
    "#739B5F", # Social Cognition
    "#6388B5", # Neural Mechanisms
    "#865FA9", # Psychometrics & JDM
]

# Theory table cell shading range
MIN_INTENSITY = 0.15
MAX_INTENSITY = 0.6


def pick_color(palette: List[str], index: int) -> str:
    if 0 <= index < len(palette):
        return palette[index]
    return palette[0]


def llm_color(cluster_index: int) -> str:
    return pick_color(LLM_COLORS, cluster_index)


def psych_color(cluster_index: int) -> str:
    return pick_color(PSYCH_COLORS, cluster_index)
