# barbershop/data.py
# Seed data loaded into an empty database at startup.

from datetime import time
from decimal import Decimal

# id: (name, category, kind, price, minutes)
SERVICES = {
    # cuts
    "social": ("Social", "cut", "single", Decimal("30"), 30),
    "degrade-navalhado": ("Degradê Navalhado", "cut", "single", Decimal("35"), 45),
    "contornado": ("Contornado", "cut", "single", Decimal("30"), 30),
    "infantil": ("Infantil", "cut", "single", Decimal("35"), 30),
    "barba": ("Barba", "beard", "single", Decimal("20"), 15),
    # finishing
    "sobrancelha": ("Sobrancelha", "eyebrow", "single", Decimal("8"), 15),
    "pezinho": ("Pezinho", "finishing", "single", Decimal("20"), 15),
    # chemical
    "pigmentacao": ("Pigmentação", "chemical", "single", Decimal("50"), 15),
    "alisamento-hidratacao": ("Alisamento com Hidratação", "chemical", "single", Decimal("45"), 30),
    "alisamento-laque": ("Alisamento com Laque", "chemical", "single", Decimal("50"), 30),
    # highlights
    "luzes-cheia": ("Luzes Cheia", "highlights", "single", Decimal("120"), 60),
    "luzes-alinhada": ("Luzes Alinhada", "highlights", "single", Decimal("80"), 60),
    "luzes-parcial": ("Luzes Parcial", "highlights", "single", Decimal("75"), 60),
    "platinado": ("Platinado", "highlights", "single", Decimal("120"), 60),
    # combos are always paid in full
    "cb-pezinho-sobrancelha": ("Pezinho + Sobrancelha", "combo", "double", Decimal("25"), 30),
    "cb-social-barba": ("Social + Barba", "combo", "double", Decimal("50"), 45),
    "cb-degrade-barba": ("Degradê Navalhado + Barba", "combo", "double", Decimal("55"), 60),
    "cb-contornado-barba": ("Contornado + Barba", "combo", "double", Decimal("50"), 45),
    "cb-degrade-pigmentacao": ("Degradê Navalhado + Pigmentação", "combo", "double", Decimal("85"), 60),
    "cb-degrade-luzes-cheia": ("Degradê Navalhado + Luzes Cheia", "combo", "double", Decimal("155"), 105),
    "ct-social-barba-sobrancelha": ("Social + Barba + Sobrancelha", "combo", "triple", Decimal("55"), 60),
    "ct-degrade-barba-sobrancelha": ("Degradê Navalhado + Barba + Sobrancelha", "combo", "triple", Decimal("60"), 75),
    "ct-degrade-platinado-sobrancelha": ("Degradê Navalhado + Platinado + Sobrancelha", "combo", "triple", Decimal("160"), 120),
}

# weekday: (is_open, open, close); 0 = Monday
WEEK_SCHEDULE = {
    0: (True, time(9, 0), time(18, 0)),
    1: (True, time(9, 0), time(18, 0)),
    2: (True, time(9, 0), time(18, 0)),
    3: (True, time(9, 0), time(18, 0)),
    4: (True, time(9, 0), time(18, 0)),
    5: (True, time(9, 0), time(14, 0)),
    6: (False, time(9, 0), time(18, 0)),
}

shop_settings = {
    "shop_name": "Barbearia Freestyle",
    "lunch_start": time(12, 0),
    "lunch_end": time(13, 0),
}
