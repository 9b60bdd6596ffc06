"""
Static fallback question bank.

Authored questions for each category set. The bank is never exhausted: every
request gets a slice of it, and it is the last tier the pipeline falls back to.
"""
import logging
import random
from typing import Dict, List, Tuple

from app.schemas.trivia import TriviaQuestion
from app.services.constants import DEFAULT_DIFFICULTY, TRIVIA_CATEGORIES, TRIVIA_CATEGORY_SET

logger = logging.getLogger(__name__)

# (id, category, question, options, correct_answer, year_indicator)
_Row = Tuple[str, str, str, Tuple[str, str, str, str], int, int]

_CURRENT_BANK: List[_Row] = [
    ("dev-1", "development", "Which consensus mechanism does Ethereum use after 'The Merge'?",
     ("Proof of Work", "Proof of Stake", "Proof of Authority", "Proof of Space"), 1, 2022),
    ("dev-2", "development", "What programming language is primarily used for Ethereum smart contracts?",
     ("JavaScript", "Python", "Solidity", "Rust"), 2, 2017),
    ("dev-3", "development", "What is ERC-721?",
     ("A fungible token standard", "A non-fungible token standard", "A governance standard", "A staking standard"), 1, 2018),
    ("dev-4", "development", "What is a Layer 2 solution?",
     ("A new blockchain", "A scaling solution built on top of an existing blockchain", "A consensus mechanism", "A type of wallet"), 1, 2020),
    ("dev-5", "development", "Which Bitcoin upgrade activated in 2021 introduced Schnorr signatures?",
     ("SegWit", "Taproot", "Lightning", "Ordinals"), 1, 2021),
    ("meme-1", "memes-nfts-tokens", "Which NFT collection features pixelated characters and became one of the first major NFT phenomena?",
     ("Bored Ape Yacht Club", "CryptoPunks", "Azuki", "Doodles"), 1, 2017),
    ("meme-2", "memes-nfts-tokens", "What does 'WAGMI' stand for in crypto culture?",
     ("We Are Getting Money Instantly", "We're All Gonna Make It", "When Art Generates Massive Income", "Wealth And Growth Metrics Index"), 1, 2021),
    ("meme-3", "memes-nfts-tokens", "What is 'Diamond Hands' referring to?",
     ("A type of NFT", "Holding assets despite volatility", "A crypto wallet", "A mining technique"), 1, 2020),
    ("meme-4", "memes-nfts-tokens", "Which meme coin was initially created as a joke but gained significant value?",
     ("Bitcoin", "Ethereum", "Dogecoin", "USD Coin"), 2, 2013),
    ("meme-5", "memes-nfts-tokens", "What does 'HODL' originally come from?",
     ("Hold On for Dear Life", "A misspelling of 'HOLD'", "High-Octane Decentralized Ledger", "Highly Optimized Digital Liquidity"), 1, 2013),
    ("scam-1", "scams-incidents", "What is a 'rug pull' in crypto?",
     ("A hardware wallet malfunction", "Developers abandoning a project after taking investors' money", "A type of mining attack", "A market manipulation technique"), 1, 2020),
    ("scam-2", "scams-incidents", "What was BitConnect primarily known for?",
     ("Being the first DEX", "A legitimate lending platform", "A Ponzi scheme", "A hardware wallet"), 2, 2018),
    ("scam-3", "scams-incidents", "What was 'The DAO' hack?",
     ("A social media account breach", "An exchange hack", "An exploit of a smart contract vulnerability", "A 51% attack"), 2, 2016),
    ("scam-4", "scams-incidents", "Which exchange filed for bankruptcy in 2022 after misusing customer funds?",
     ("Binance", "Coinbase", "FTX", "Kraken"), 2, 2022),
    ("scam-5", "scams-incidents", "What was the name of the Bitcoin exchange that was hacked in 2014, leading to its bankruptcy?",
     ("Mt. Gox", "Binance", "Coinbase", "Kraken"), 0, 2014),
    ("char-1", "crypto-characters", "What is the pseudonym of Bitcoin's creator?",
     ("Hal Finney", "Satoshi Nakamoto", "Nick Szabo", "Wei Dai"), 1, 2009),
    ("char-2", "crypto-characters", "Who received the first ever Bitcoin transaction?",
     ("Hal Finney", "Gavin Andresen", "Roger Ver", "Laszlo Hanyecz"), 0, 2009),
    ("char-3", "crypto-characters", "Who published the Ethereum whitepaper?",
     ("Charles Hoskinson", "Gavin Wood", "Vitalik Buterin", "Joseph Lubin"), 2, 2013),
    ("char-4", "crypto-characters", "Who famously bought two pizzas for 10,000 BTC?",
     ("Laszlo Hanyecz", "Satoshi Nakamoto", "Hal Finney", "Charlie Lee"), 0, 2010),
    ("char-5", "crypto-characters", "Who founded the exchange Binance?",
     ("Brian Armstrong", "Sam Bankman-Fried", "Changpeng Zhao", "Jesse Powell"), 2, 2017),
]

_LEGACY_BANK: List[_Row] = [
    ("dev-1", "development", "Which consensus mechanism does Ethereum use after 'The Merge'?",
     ("Proof of Work", "Proof of Stake", "Proof of Authority", "Proof of Space"), 1, 2022),
    ("dev-2", "development", "What programming language is primarily used for Ethereum smart contracts?",
     ("JavaScript", "Python", "Solidity", "Rust"), 2, 2017),
    ("dev-3", "development", "What is ERC-721?",
     ("A fungible token standard", "A non-fungible token standard", "A governance standard", "A staking standard"), 1, 2018),
    ("dev-4", "development", "What is a Layer 2 solution?",
     ("A new blockchain", "A scaling solution built on top of an existing blockchain", "A consensus mechanism", "A type of wallet"), 1, 2020),
    ("dev-5", "development", "What is the primary purpose of Farcaster?",
     ("A decentralized exchange", "A decentralized social protocol", "A layer 2 solution", "A stablecoin protocol"), 1, 2021),
    ("meme-1", "memes-nfts", "Which NFT collection features pixelated characters and became one of the first major NFT phenomena?",
     ("Bored Ape Yacht Club", "CryptoPunks", "Azuki", "Doodles"), 1, 2017),
    ("meme-2", "memes-nfts", "What does 'WAGMI' stand for in crypto culture?",
     ("We Are Getting Money Instantly", "We're All Gonna Make It", "When Art Generates Massive Income", "Wealth And Growth Metrics Index"), 1, 2021),
    ("meme-3", "memes-nfts", "What is 'Diamond Hands' referring to?",
     ("A type of NFT", "Holding assets despite volatility", "A crypto wallet", "A mining technique"), 1, 2020),
    ("meme-4", "memes-nfts", "Which meme coin was initially created as a joke but gained significant value?",
     ("Bitcoin", "Ethereum", "Dogecoin", "USD Coin"), 2, 2013),
    ("meme-5", "memes-nfts", "What does 'HODL' originally come from?",
     ("Hold On for Dear Life", "A misspelling of 'HOLD'", "High-Octane Decentralized Ledger", "Highly Optimized Digital Liquidity"), 1, 2013),
    ("scam-1", "scams", "What is a 'rug pull' in crypto?",
     ("A hardware wallet malfunction", "Developers abandoning a project after taking investors' money", "A type of mining attack", "A market manipulation technique"), 1, 2020),
    ("scam-2", "scams", "What was BitConnect primarily known for?",
     ("Being the first DEX", "A legitimate lending platform", "A Ponzi scheme", "A hardware wallet"), 2, 2018),
    ("scam-3", "scams", "What is 'phishing' in the context of crypto?",
     ("Mining for small amounts of crypto", "Attempting to steal private keys through deception", "A consensus mechanism", "A type of airdrop"), 1, 2016),
    ("scam-4", "scams", "What is a 'honeypot' in crypto?",
     ("A contract designed to trap funds", "A high-yield staking pool", "A type of hardware wallet", "A reward mechanism"), 0, 2019),
    ("scam-5", "scams", "What type of scam involves impersonating celebrities to promote fake giveaways?",
     ("Rug pull", "Pump and dump", "Social engineering", "Celebrity endorsement scam"), 3, 2018),
    ("incident-1", "incidents", "What was 'The DAO' hack?",
     ("A social media account breach", "An exchange hack", "An exploit of a smart contract vulnerability", "A 51% attack"), 2, 2016),
    ("incident-2", "incidents", "Which exchange filed for bankruptcy in 2022 after misusing customer funds?",
     ("Binance", "Coinbase", "FTX", "Kraken"), 2, 2022),
    ("incident-3", "incidents", "What was the name of the Bitcoin exchange that was hacked in 2014, leading to its bankruptcy?",
     ("Mt. Gox", "Binance", "Coinbase", "Kraken"), 0, 2014),
    ("incident-4", "incidents", "What major event caused Bitcoin to crash in May 2021?",
     ("US regulation", "China's mining ban", "Elon Musk's tweets", "DeFi collapse"), 1, 2021),
    ("incident-5", "incidents", "What was the Terra/Luna collapse of 2022?",
     ("A mining pool shutdown", "A stablecoin losing its peg and collapsing", "An exchange hack", "A 51% attack"), 1, 2022),
]

STATIC_BANKS: Dict[str, List[_Row]] = {
    "current": _CURRENT_BANK,
    "legacy": _LEGACY_BANK,
}


def _build_question(row: _Row, difficulty: str) -> TriviaQuestion:
    question_id, category, text, options, answer, year = row
    return TriviaQuestion(
        id=question_id,
        category=category,
        question=text,
        options=list(options),
        correct_answer=answer,
        year_indicator=year,
        difficulty=difficulty,
    )


def get_static_questions(difficulty: str = DEFAULT_DIFFICULTY) -> List[TriviaQuestion]:
    """ Every question of the configured bank, tagged with the requested difficulty. """
    return [_build_question(row, difficulty) for row in STATIC_BANKS[TRIVIA_CATEGORY_SET]]


def select_static_questions(count: int, difficulty: str = DEFAULT_DIFFICULTY) -> List[TriviaQuestion]:
    """
    Pick `count` questions spread evenly across categories.

    Each category gets count // n questions, the first count % n categories one
    more. The result is shuffled and may be shorter than `count` when the bank
    runs out for a category.
    """
    if count <= 0:
        return []

    bank = get_static_questions(difficulty)
    per_category = count // len(TRIVIA_CATEGORIES)
    remainder = count % len(TRIVIA_CATEGORIES)

    selected: List[TriviaQuestion] = []
    for index, category in enumerate(TRIVIA_CATEGORIES):
        category_count = per_category + 1 if index < remainder else per_category
        category_questions = [q for q in bank if q.category == category]
        random.shuffle(category_questions)
        selected.extend(category_questions[:category_count])

    random.shuffle(selected)
    logger.info(f"Selected {len(selected)} static questions for count={count}, difficulty={difficulty}")
    return selected[:count]


def estimate_entry_year(score: int, total_questions: int) -> int:
    """ Map a quiz score onto the year the player most likely got into crypto. """
    if total_questions <= 0:
        raise ValueError("total_questions must be positive")

    percentage = score / total_questions * 100
    thresholds = (
        (90, 2013),
        (80, 2015),
        (70, 2017),
        (60, 2019),
        (50, 2020),
        (40, 2021),
        (30, 2022),
    )
    for minimum, year in thresholds:
        if percentage >= minimum:
            return year
    return 2023
