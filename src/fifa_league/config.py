"""Static simulation configuration constants."""

# Points added to the home rating before comparing teams.
HOME_ADVANTAGE = 5

# A 15-point adjusted edge gives the home side roughly a 73% win probability.
LOGISTIC_SCALE = 15.0

# Draw probability band: 0.30 for evenly matched teams, falling to 0.15.
DRAW_BASE = 0.15
DRAW_SPAN = 0.15

MAX_GOALS = 6
MAX_BUCKET_GOALS = 3

FALLBACK_PROBABILITIES: tuple[float, float, float] = (0.33, 0.34, 0.33)

MIN_RATING = 1
MAX_RATING = 100

COIN_SIDES: tuple[str, str] = ("heads", "tails")

REGULATION_ROUNDS = 5
MAX_SHOOTOUT_ROUNDS = 10
MAX_SHOOTOUT_ATTEMPTS = MAX_SHOOTOUT_ROUNDS * 2

SUGGESTED_STRENGTHS: dict[str, dict[str, int]] = {
    "Premier League": {
        "Manchester City": 95,
        "Arsenal": 88,
        "Liverpool": 87,
        "Chelsea": 82,
        "Manchester United": 78,
        "Tottenham Hotspur": 76,
        "Newcastle United": 75,
        "Aston Villa": 70,
        "Brighton & Hove Albion": 68,
        "West Ham United": 65,
        "Crystal Palace": 62,
        "Fulham": 60,
        "Wolverhampton Wanderers": 58,
        "Brentford": 57,
        "Everton": 55,
        "Bournemouth": 54,
        "Nottingham Forest": 52,
        "Burnley": 48,
        "Sheffield United": 46,
        "Luton Town": 45,
    },
    "Championship": {
        "Leicester City": 78,
        "Leeds United": 75,
        "Southampton": 73,
        "West Bromwich Albion": 70,
        "Norwich City": 68,
        "Middlesbrough": 65,
        "Hull City": 62,
        "Coventry City": 60,
        "Watford": 59,
        "Bristol City": 58,
        "Blackburn Rovers": 57,
        "Swansea City": 56,
        "Preston North End": 55,
        "Cardiff City": 54,
        "Millwall": 53,
        "Queens Park Rangers": 52,
        "Stoke City": 51,
        "Sheffield Wednesday": 50,
        "Ipswich Town": 49,
        "Birmingham City": 48,
        "Derby County": 47,
        "Portsmouth": 46,
        "Rotherham United": 45,
        "Plymouth Argyle": 42,
    },
}
