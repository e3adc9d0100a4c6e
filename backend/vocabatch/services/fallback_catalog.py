"""Static vocabulary shipped with the app, used when the provider is unavailable.

Entries are (original, translation-to-English) pairs.
"""

STATIC_CATALOG: dict[str, dict[str, list[tuple[str, str]]]] = {
    "Turkish": {
        "A1": [
            ("merhaba", "hello"), ("güle güle", "goodbye"), ("teşekkür ederim", "thank you"),
            ("lütfen", "please"), ("evet", "yes"), ("hayır", "no"), ("su", "water"),
            ("yemek", "food"), ("yardım", "help"), ("zaman", "time"), ("ev", "house"),
            ("okul", "school"), ("araba", "car"), ("kitap", "book"), ("aile", "family"),
            ("çocuk", "child"), ("kadın", "woman"), ("erkek", "man"), ("büyük", "big"),
            ("küçük", "small"), ("iyi", "good"), ("kötü", "bad"), ("güzel", "beautiful"),
            ("çirkin", "ugly"), ("hızlı", "fast"), ("yavaş", "slow"), ("sıcak", "hot"),
            ("soğuk", "cold"), ("açık", "open"), ("kapalı", "closed"), ("bir", "one"),
            ("iki", "two"), ("üç", "three"), ("dört", "four"), ("beş", "five"),
            ("altı", "six"), ("yedi", "seven"), ("sekiz", "eight"), ("dokuz", "nine"),
            ("on", "ten"), ("kırmızı", "red"), ("mavi", "blue"), ("yeşil", "green"),
            ("sarı", "yellow"), ("siyah", "black"), ("beyaz", "white"), ("gelmek", "to come"),
            ("gitmek", "to go"), ("olmak", "to be"), ("yapmak", "to do"),
        ],
        "A2": [
            ("restoran", "restaurant"), ("hastane", "hospital"), ("ulaşım", "transportation"),
            ("iletişim", "communication"), ("bilgi", "information"), ("çalışmak", "to work"),
            ("öğrenmek", "to learn"), ("konuşmak", "to speak"), ("dinlemek", "to listen"),
            ("okumak", "to read"), ("yazmak", "to write"), ("yemek yapmak", "to cook"),
            ("alışveriş", "shopping"), ("tatil", "vacation"), ("spor", "sport"),
            ("müzik", "music"), ("film", "movie"), ("televizyon", "television"),
            ("telefon", "phone"), ("bilgisayar", "computer"), ("para", "money"),
            ("işçi", "worker"), ("öğretmen", "teacher"), ("doktor", "doctor"),
            ("öğrenci", "student"), ("arkadaş", "friend"), ("komşu", "neighbor"),
            ("şehir", "city"), ("köy", "village"), ("ülke", "country"), ("dil", "language"),
        ],
        "B1": [
            ("teknoloji", "technology"), ("çevre", "environment"), ("eğitim", "education"),
            ("iş", "business"), ("kültür", "culture"), ("siyaset", "politics"),
            ("toplum", "society"), ("gelecek", "future"), ("geçmiş", "past"),
            ("değişmek", "to change"), ("gelişmek", "to develop"), ("azalmak", "to decrease"),
            ("artmak", "to increase"), ("devam etmek", "to continue"), ("düşünmek", "to think"),
            ("hissetmek", "to feel"), ("anlamak", "to understand"), ("açıklamak", "to explain"),
            ("tartışmak", "to discuss"), ("karar vermek", "to decide"), ("seçmek", "to choose"),
            ("tercih etmek", "to prefer"), ("önermek", "to suggest"), ("planlamak", "to plan"),
            ("hazırlamak", "to prepare"), ("yönetmek", "to manage"), ("katılmak", "to participate"),
            ("paylaşmak", "to share"), ("deneyim", "experience"), ("beceri", "skill"),
            ("yetenek", "talent"), ("zeka", "intelligence"),
        ],
    },
    "Spanish": {
        "A1": [
            ("hola", "hello"), ("adiós", "goodbye"), ("gracias", "thank you"),
            ("por favor", "please"), ("sí", "yes"), ("no", "no"), ("agua", "water"),
            ("comida", "food"), ("ayuda", "help"), ("tiempo", "time"), ("casa", "house"),
            ("escuela", "school"), ("coche", "car"), ("libro", "book"), ("familia", "family"),
            ("niño", "child"), ("mujer", "woman"), ("hombre", "man"), ("grande", "big"),
            ("pequeño", "small"), ("bueno", "good"), ("malo", "bad"), ("hermoso", "beautiful"),
            ("feo", "ugly"), ("rápido", "fast"), ("lento", "slow"), ("caliente", "hot"),
            ("frío", "cold"), ("abierto", "open"), ("cerrado", "closed"), ("uno", "one"),
            ("dos", "two"), ("tres", "three"), ("cuatro", "four"), ("cinco", "five"),
            ("seis", "six"), ("siete", "seven"), ("ocho", "eight"), ("nueve", "nine"),
            ("diez", "ten"), ("rojo", "red"), ("azul", "blue"), ("verde", "green"),
            ("amarillo", "yellow"), ("negro", "black"), ("blanco", "white"), ("venir", "to come"),
            ("ir", "to go"), ("ser", "to be"), ("hacer", "to do"),
        ],
    },
    "French": {
        "A1": [
            ("bonjour", "hello"), ("au revoir", "goodbye"), ("merci", "thank you"),
            ("s'il vous plaît", "please"), ("oui", "yes"), ("non", "no"), ("eau", "water"),
            ("nourriture", "food"), ("aide", "help"), ("temps", "time"), ("maison", "house"),
            ("école", "school"), ("voiture", "car"), ("livre", "book"), ("famille", "family"),
            ("enfant", "child"), ("femme", "woman"), ("homme", "man"), ("grand", "big"),
            ("petit", "small"), ("bon", "good"), ("mauvais", "bad"), ("beau", "beautiful"),
            ("laid", "ugly"), ("rapide", "fast"), ("lent", "slow"), ("chaud", "hot"),
            ("froid", "cold"), ("ouvert", "open"), ("fermé", "closed"), ("un", "one"),
            ("deux", "two"), ("trois", "three"), ("quatre", "four"), ("cinq", "five"),
            ("six", "six"), ("sept", "seven"), ("huit", "eight"), ("neuf", "nine"),
            ("dix", "ten"), ("rouge", "red"), ("bleu", "blue"), ("vert", "green"),
            ("jaune", "yellow"), ("noir", "black"), ("blanc", "white"), ("venir", "to come"),
            ("aller", "to go"), ("être", "to be"), ("faire", "to do"),
        ],
    },
    "German": {
        "A1": [
            ("hallo", "hello"), ("tschüss", "goodbye"), ("danke", "thank you"),
            ("bitte", "please"), ("ja", "yes"), ("nein", "no"), ("Wasser", "water"),
            ("Essen", "food"), ("Hilfe", "help"), ("Zeit", "time"), ("Haus", "house"),
            ("Schule", "school"), ("Auto", "car"), ("Buch", "book"), ("Familie", "family"),
            ("Kind", "child"), ("Frau", "woman"), ("Mann", "man"), ("groß", "big"),
            ("klein", "small"), ("gut", "good"), ("schlecht", "bad"), ("schön", "beautiful"),
            ("schnell", "fast"), ("langsam", "slow"), ("heiß", "hot"), ("kalt", "cold"),
            ("offen", "open"), ("geschlossen", "closed"), ("eins", "one"), ("zwei", "two"),
            ("drei", "three"), ("vier", "four"), ("fünf", "five"), ("rot", "red"),
            ("blau", "blue"), ("grün", "green"), ("gelb", "yellow"), ("schwarz", "black"),
            ("weiß", "white"), ("kommen", "to come"), ("gehen", "to go"), ("sein", "to be"),
            ("machen", "to do"),
        ],
    },
}

# Last resort, in English. Translated on demand for other learning languages.
EMERGENCY_WORDS: dict[str, list[tuple[str, str]]] = {
    "A1": [
        ("hello", "greeting"), ("goodbye", "farewell"), ("thank you", "gratitude"),
        ("please", "polite request"), ("yes", "affirmative"), ("no", "negative"),
        ("water", "liquid"), ("food", "nourishment"), ("help", "assistance"),
        ("time", "duration"),
    ],
    "A2": [
        ("restaurant", "eating place"), ("hospital", "medical facility"),
        ("transportation", "travel"), ("communication", "talking"),
        ("information", "data"),
    ],
    "B1": [
        ("technology", "modern tools"), ("environment", "surroundings"),
        ("education", "learning"), ("business", "commerce"), ("culture", "traditions"),
    ],
}


def static_words(language: str, level: str) -> list[tuple[str, str]]:
    return STATIC_CATALOG.get(language, {}).get(level, [])


def emergency_words(level: str) -> list[tuple[str, str]]:
    return EMERGENCY_WORDS.get(level) or EMERGENCY_WORDS["A1"]
