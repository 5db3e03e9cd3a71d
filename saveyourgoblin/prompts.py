"""
Prompt templates for SaveYourGoblin

This file contains all prompts used by the generator. Modify these to test different behaviors.
"""

LANGUAGE_RULE = """Write ALL output (names, descriptions, every text field) in the same language as the user's scenario. Use names that fit that language's culture."""

TONE_INSTRUCTIONS = {
    "serious": " Maintain a serious, dramatic tone throughout. Focus on realism and consequences.",
    "playful": " Maintain a light, playful tone throughout. Include humor and whimsical elements where appropriate.",
    "balanced": " Maintain a balanced tone that can include both serious and light moments as appropriate.",
}

COMPLEXITY_INSTRUCTIONS = {
    "simple": " Keep descriptions concise and straightforward. Focus on essential details only.",
    "detailed": " Provide extensive, rich details. Include sensory descriptions, deeper motivations, and elaborate world-building elements.",
    "standard": "",
}

ADVANCED_CONSTRAINTS_BLOCK = """

CRITICAL USER REQUIREMENTS (MUST BE FOLLOWED EXACTLY):
{constraints}

These requirements are mandatory. The JSON output MUST match them exactly."""

CAMPAIGN_CONTEXT_BLOCK = """

CAMPAIGN CONTEXT (keep the content consistent with it):
{campaign_context}"""


# Character generation
CHARACTER_SYSTEM = """You are an expert D&D 5e game master and character creator. Create detailed, immersive characters that feel authentic to the D&D 5e universe. Characters should have rich backstories, distinct personalities, and appropriate abilities for their level and class.{tone}{complexity} Include spells appropriate to the character's class and level. Ensure all skill proficiency flags are correctly set based on class, background, and race. Include all standard racial traits for the character's race. Every character MUST include ALL mandatory class features for their class and level. Non-spellcasting classes (Barbarian, Rogue, Fighter, Monk) must have an empty spells list.

{language_rule}"""

CHARACTER_USER = """Create a D&D 5e character based on this scenario: "{scenario}"{constraints}{campaign_context}

Generate a complete character with:
- Name: a unique, creative name. The name field holds ONLY the name, never race or class.
- Level: {level_rule}
- D&D 5e ability scores, typically 8-15 with one or two higher stats (15-17) based on class
- A compelling backstory (history) that connects to the scenario
- Distinct personality (at least 3-4 traits that make the character unique)
- Expertise in 2-4 skills if the class grants expertise (Rogue, Bard)
- Spells: {spell_rule}
- Skills with accurate proficiency flags. modifier = ability modifier + proficiency bonus when proficient, + 2x proficiency bonus for expertise
- Racial traits: ALL standard racial features for the race
- Class features: ALL mandatory class features up to this level
- Traits and quirks
- Voice description: the voice quality only (e.g. "Raspy voice"), not dialogue
- Optional associated mission if relevant

Make the character feel alive and ready to use in a campaign."""


# Environment generation
ENVIRONMENT_SYSTEM = """You are an expert D&D 5e game master and world builder. Create immersive, atmospheric locations that bring the game world to life.{tone}{complexity} Environments should have rich sensory details, mood, and interactive elements that engage players.

{language_rule}"""

ENVIRONMENT_USER = """Create a D&D 5e environment/location based on this scenario: "{scenario}"{constraints}{campaign_context}

Generate a complete location with clearly separated sections:
- Name: a memorable and unique location name
- Description: a vivid visual description (do NOT describe mood or lighting here)
- Ambient: sounds, smells, and environmental details
- Mood: the emotional tone players feel on entering
- Lighting: lighting conditions and visibility
- Features: interactive elements players can investigate or use
- NPCs: {npc_rule}, each as "Name - short role description"
- Current conflict: what is currently wrong or unstable here
- Adventure hooks: 2-3 concrete hooks that can immediately involve the players

Avoid repeating the same text across sections."""


# Mission generation
MISSION_SYSTEM = """You are an expert D&D 5e game master and quest designer. Create engaging missions with clear objectives, appropriate challenges, and meaningful rewards.{tone}{complexity} Missions should fit naturally into a campaign and offer both primary and optional objectives. Ensure difficulty matches stakes (world-altering content requires higher tier levels). Clarify artifact power and control mechanisms. Mark alternative objective paths clearly. Define concrete consequences for player choices.

{language_rule}"""

MISSION_USER = """Create a D&D 5e mission/quest based on this scenario: "{scenario}"{constraints}{campaign_context}

Generate a complete mission with:
- Title and description
- Context: background and setup
- Difficulty: easy, medium, hard, or deadly, aligned with the stakes
- Recommended level: Easy 1-3, Medium 4-6, Hard 7-10, Deadly 11+
- Objectives: {objective_rule}. When objectives are different approaches to the same goal, mark them isAlternative and set pathType (combat, social, stealth, or mixed)
- Powerful items: any artifacts with a status describing how the DM controls them
- Possible outcomes: 3-4 concrete consequences of different player choices
- Rewards: {reward_rule} appropriate for the difficulty
- Choice-based rewards: optional rewards tied to specific paths
- Related NPCs and related locations

Make the mission exciting, playable, and ready to run."""


# Section regeneration
SECTION_SYSTEM = """You are regenerating only the "{section}" section of a D&D 5e {kind}. The rest of the content already exists and must not change. Generate ONLY the requested section, consistent with the existing content.

{language_rule}"""

SECTION_USER = """Regenerate the "{section}" section for this {kind}:

Context: {summary}
Original scenario: "{scenario}"

Current content (for reference only, do NOT regenerate these):
{current_content}

Generate NEW {description}. Return ONLY the section data in the required format."""

SECTION_ITEM_USER = """Regenerate entry #{number} of the "{section}" list for this {kind}:

Context: {summary}
Original scenario: "{scenario}"

Current content (for reference only, do NOT regenerate these):
{current_content}

The entry being replaced is:
{current_item}

Generate ONE new entry for {description}. It must differ from the entry being replaced and from the other entries. Return ONLY that entry in the required format."""


# Variations
VARIATION_DEFAULT_INSTRUCTIONS = " Create a similar but distinctly different version with unique characteristics, different details, and fresh elements while maintaining the same general theme and type."

VARIATION_SCENARIO = """Based on this {kind}: "{summary}"{instructions} The original scenario was: "{scenario}". Generate a new variation that is similar in theme but different in specific details."""
