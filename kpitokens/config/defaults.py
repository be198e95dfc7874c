DEFAULT_CONFIG = {
    # -----------------------------
    # FACTORY (owner-gated at runtime)
    # -----------------------------
    "factory": {
        "fee": 30,              # basis points, .3%
        "vote_timeout": 120,    # seconds an answer must stand
        "fee_receiver": None,   # resolved to a labelled account if omitted
        "arbitrator": None,     # resolved to a labelled account if omitted
    },

    # -----------------------------
    # EVENT OBSERVERS (OPTIONAL)
    # -----------------------------
    # - {"type": "console"}
    # - {"type": "file", "path": "events.jsonl"}
    "observers": [],

    # -----------------------------
    # LOGGING
    # -----------------------------
    "logging": {
        "level": "INFO",        # DEBUG | INFO | WARNING | ERROR
    },

    # -----------------------------
    # OUTPUT CONTROL
    # -----------------------------
    "output_dir": "runs",

    # -----------------------------
    # METADATA (OPTIONAL)
    # -----------------------------
    "metadata": {
        "framework": "kpitokens",
    },
}


DEFAULT_SCENARIO = {
    "name": "KPI token settlement",

    # -----------------------------
    # COLLATERAL (human units)
    # -----------------------------
    "collateral": {
        "name": "Collateral",
        "symbol": "CLT",
        "decimals": 18,
        "amount": "100",
    },

    # -----------------------------
    # CLAIM TOKEN (human units, 18 decimals)
    # -----------------------------
    "token": {
        "name": "KPI token",
        "symbol": "KPI",
        "total_supply": "100000",
    },

    # -----------------------------
    # QUESTION
    # -----------------------------
    "question": "Will the KPI be reached?",
    "expiry": "+300",          # epoch seconds, ISO-8601 or "+<seconds>"
    "bounds": {
        "lower": 0,
        "higher": 1,           # (0, 1) is a boolean KPI
    },
    "answer": "yes",           # yes | no | invalid | integer | 0x-hex word

    # -----------------------------
    # HOLDERS (% of claim supply, creator keeps the rest)
    # -----------------------------
    "holders": {},
}
