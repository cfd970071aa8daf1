"""
Prompt construction for diagnosis, follow-up and chat requests.

Every prompt pins the reply to one resolved language. The model is asked for
JSON only, but replies are still run through the extractor because models do
not reliably comply.
"""
from typing import Optional

from app.api.schemas import CaseRecord, LanguageContext, RegionProfile
from app.services.regions import location_context, season_for

FOLLOW_UP_STATUSES = "RECOVERED|MONITORING|ONGOING|WORSENED"


def _diagnosis_schema(crop: str, region: str, lang: str) -> str:
    return (
        "{"
        f'"crop":"{crop}",'
        f'"disease":"name in {lang}",'
        '"confidence":85,'
        '"severity":"Mild|Moderate|Severe",'
        f'"description":"2 sentences in {lang}",'
        f'"symptoms":["symptom1 in {lang}","symptom2 in {lang}","symptom3 in {lang}"],'
        f'"causes":"1 sentence in {lang}",'
        f'"chemicalTreatment":{{"pesticide":"name","dosage":"amount","method":"in {lang}","frequency":"in {lang}"}},'
        f'"organicTreatment":"1 sentence in {lang} using local {region} materials",'
        f'"soilCare":"1 sentence in {lang} for {region} soil",'
        f'"localRecommendation":"2 sentences in {lang} about {region} season and where to buy medicine",'
        f'"govtScheme":"scheme name in {lang}",'
        f'"sevenDayPlan":[{{"day":1,"action":"in {lang}"}},{{"day":2,"action":""}},{{"day":3,"action":""}},'
        '{"day":4,"action":""},{"day":5,"action":""},{"day":6,"action":""},{"day":7,"action":""}],'
        f'"warning":"1 sentence in {lang} about {region} seasonal risk",'
        f'"voiceScript":"4 warm sentences in {lang} as a friendly krishi sevak talking to a farmer."'
        "}"
    )


def build_diagnosis_prompt(
    crop: str,
    region: str,
    profile: Optional[RegionProfile],
    language: LanguageContext,
    month: int,
) -> str:
    lang = language.resolved_language
    season = season_for(profile, month) if profile else ""
    loc_ctx = location_context(profile, month) if profile else ""

    return (
        "You are an expert plant pathologist and agricultural advisor for India.\n"
        f"RESOLVED OUTPUT LANGUAGE: {lang}. Write EVERY text field ENTIRELY in {lang}. "
        f"No mixing. No English unless {lang} is English.\n"
        f"Crop: {crop} | State: {region} | Season: {season}\n"
        f"{loc_ctx}\n\n"
        "Analyze the crop image and return ONLY valid JSON (no markdown, no backticks, no extra text):\n"
        f"{_diagnosis_schema(crop, region, lang)}"
    )


def build_follow_up_prompt(case: CaseRecord, language: LanguageContext) -> str:
    lang = language.resolved_language
    pesticide = case.chemical_treatment.pesticide or "unknown"

    return (
        f"Follow-up photo for crop that had: {case.disease_name} ({case.severity.value}) "
        f"in {case.crop_name}. Original treatment: {pesticide}. "
        "Is disease recovering, stable, or worsening? "
        f"Write assessment and actionNeeded ENTIRELY in {lang}. Never mix languages. "
        f'Reply ONLY as JSON: {{"status":"{FOLLOW_UP_STATUSES}",'
        '"assessment":"2 sentences","actionNeeded":"1 sentence"}'
    )


def build_chat_prompt(
    question: str,
    region: str,
    crop: str,
    profile: Optional[RegionProfile],
    language: LanguageContext,
    month: int,
) -> str:
    season = season_for(profile, month) if profile else ""
    soil = profile.dominant_soil if profile else ""

    return (
        "You are FasalDoc AI, a warm expert krishi sevak.\n"
        "LANGUAGE CONTROL RULES:\n"
        "1. If User Selected Language is provided -> use ONLY that language.\n"
        "2. If User Selected Language is NOT provided -> use State Default Language.\n"
        "3. Never mix languages.\n"
        "4. Entire response must be in one language only.\n"
        "5. Do not include bilingual explanations.\n"
        f"User Selected Language: {language.explicit_language or 'NULL'}\n"
        f"State Default Language: {language.location_default_language}\n"
        f"Resolved Language: {language.resolved_language}\n"
        f"State: {region} | Crop: {crop} | Season: {season} | Soil: {soil}\n"
        f'Farmer: "{question}"\n'
        "Reply 3-5 sentences. Be warm, hyper-local, practical."
    )
