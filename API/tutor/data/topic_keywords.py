"""
Topic → keyword stems used by the relevance gate's mismatch pre-check.

Keys are canonical topic names in lower case. A query that contains a stem of a topic
other than the session topic is treated as off-topic. Add a subject by adding an entry;
the gate reads whatever mapping it is given.
"""

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "quadratic equations": (
        "quadratic",
        "equation",
        "parabola",
        "x²",
        "square",
        "roots",
        "factoring",
    ),
    "polynomials": ("polynomial", "degree", "coefficient", "term", "variable"),
    "probability": (
        "probability",
        "chance",
        "likelihood",
        "odds",
        "random",
        "sample",
        "event",
    ),
    "trigonometry": ("sin", "cos", "tan", "angle", "triangle", "trigonometry"),
    "statistics": ("mean", "median", "mode", "data", "statistics", "average"),
    "geometry": ("circle", "triangle", "rectangle", "area", "perimeter", "angle"),
    "algebra": ("variable", "expression", "solve", "equation", "linear"),
}
