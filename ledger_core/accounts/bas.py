"""
BAS chart of accounts (subset).

The accounts a small aktiebolag books against day to day. Anything
else arrives through an SIE import or is registered ad hoc.
"""

BAS_ACCOUNTS: dict[str, str] = {
    # 1 Tillgångar
    "1010": "Utvecklingsutgifter",
    "1210": "Maskiner och andra tekniska anläggningar",
    "1220": "Inventarier och verktyg",
    "1229": "Ackumulerade avskrivningar på inventarier och verktyg",
    "1250": "Datorer",
    "1259": "Ackumulerade avskrivningar på datorer",
    "1460": "Lager av handelsvaror",
    "1510": "Kundfordringar",
    "1610": "Kortfristiga fordringar hos anställda",
    "1630": "Avräkning för skatter och avgifter (skattekonto)",
    "1650": "Momsfordran",
    "1680": "Andra kortfristiga fordringar",
    "1710": "Förutbetalda hyreskostnader",
    "1790": "Övriga förutbetalda kostnader och upplupna intäkter",
    "1910": "Kassa",
    "1920": "PlusGiro",
    "1930": "Företagskonto / checkkonto / affärskonto",
    "1940": "Övriga bankkonton",
    # 2 Eget kapital och skulder
    "2081": "Aktiekapital",
    "2086": "Reservfond",
    "2091": "Balanserad vinst eller förlust",
    "2098": "Vinst eller förlust från föregående år",
    "2099": "Årets resultat",
    "2110": "Periodiseringsfonder",
    "2150": "Ackumulerade överavskrivningar",
    "2350": "Andra långfristiga skulder till kreditinstitut",
    "2393": "Lån från närstående personer, långfristig del",
    "2440": "Leverantörsskulder",
    "2510": "Skatteskulder",
    "2611": "Utgående moms på försäljning inom Sverige, 25 %",
    "2621": "Utgående moms på försäljning inom Sverige, 12 %",
    "2631": "Utgående moms på försäljning inom Sverige, 6 %",
    "2641": "Debiterad ingående moms",
    "2650": "Redovisningskonto för moms",
    "2710": "Personalskatt",
    "2730": "Lagstadgade sociala avgifter och särskild löneskatt",
    "2893": "Skulder till närstående personer, kortfristig del",
    "2910": "Upplupna löner",
    "2920": "Upplupna semesterlöner",
    "2990": "Övriga upplupna kostnader och förutbetalda intäkter",
    # 3 Rörelsens inkomster/intäkter
    "3001": "Försäljning inom Sverige, 25 % moms",
    "3002": "Försäljning inom Sverige, 12 % moms",
    "3003": "Försäljning inom Sverige, 6 % moms",
    "3040": "Försäljning av tjänster",
    "3305": "Försäljning av tjänster till land utanför EU",
    "3740": "Öres- och kronutjämning",
    "3910": "Hyres- och arrendeintäkter",
    "3990": "Övriga ersättningar och intäkter",
    # 4 Utgifter/kostnader för varor, material och vissa köpta tjänster
    "4010": "Inköp material och varor",
    "4400": "Momspliktiga inköp i Sverige",
    "4535": "Inköp av tjänster från annat EU-land, 25 %",
    # 5-6 Övriga externa rörelseutgifter/kostnader
    "5010": "Lokalhyra",
    "5410": "Förbrukningsinventarier",
    "5420": "Programvaror",
    "5460": "Förbrukningsmaterial",
    "5611": "Drivmedel för personbilar",
    "5800": "Resekostnader",
    "5910": "Annonsering",
    "6071": "Representation, avdragsgill",
    "6072": "Representation, ej avdragsgill",
    "6110": "Kontorsmateriel",
    "6212": "Mobiltelefon",
    "6230": "Datakommunikation",
    "6250": "Postbefordran",
    "6530": "Redovisningstjänster",
    "6540": "IT-tjänster",
    "6570": "Bankkostnader",
    "6991": "Övriga externa kostnader, avdragsgilla",
    # 7 Utgifter/kostnader för personal, avskrivningar m.m.
    "7010": "Löner till kollektivanställda",
    "7210": "Löner till tjänstemän",
    "7220": "Löner till företagsledare",
    "7510": "Arbetsgivaravgifter",
    "7690": "Övriga personalkostnader",
    "7832": "Avskrivningar på inventarier och verktyg",
    "7834": "Avskrivningar på datorer",
    # 8 Finansiella och andra inkomster/intäkter och utgifter/kostnader
    "8310": "Ränteintäkter från omsättningstillgångar",
    "8314": "Skattefria ränteintäkter",
    "8410": "Räntekostnader för långfristiga skulder",
    "8423": "Räntekostnader för skatter och avgifter",
    "8810": "Förändring av periodiseringsfonder",
    "8910": "Skatt som belastar årets resultat",
    "8999": "Årets resultat",
}
