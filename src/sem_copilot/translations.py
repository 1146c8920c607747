from typing import Dict

LANGUAGES = ("th", "en", "cn")
DEFAULT_LANGUAGE = "th"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "th": {
        "greeting": "สวัสดีครับ ผม Dr.SEM ยินดีให้คำปรึกษาเรื่อง Structural Equation Modeling ครับ",
        "placeholder": "ถามคำถามเกี่ยวกับ SEM, Model Fit หรือขอคำแนะนำ...",
        "upload": "อัปโหลดเอกสาร/รูปภาพ",
        "toolCanvas": "กระดานวิจัย",
        "toolFit": "ตรวจสอบ Fit Index",
        "toolApa": "ตาราง APA",
        "toolJamovi": "Jamovi Syntax",
        "suggestion": "แนะนำให้ใช้เครื่องมือ:",
        "switch": "เปลี่ยน",
        "importantQuestions": "ข้อคำถามที่สำคัญ",
        "relatedQuestions": "ข้อคำถามที่เกี่ยวเนื่อง",
    },
    "en": {
        "greeting": "Hello, I am Dr.SEM, ready to assist you with Structural Equation Modeling.",
        "placeholder": "Ask about SEM, Model Fit, or seek advice...",
        "upload": "Upload Doc/Image",
        "toolCanvas": "Research Canvas",
        "toolFit": "Fit Checker",
        "toolApa": "APA Table",
        "toolJamovi": "Jamovi Syntax",
        "suggestion": "Suggested Tool:",
        "switch": "Switch",
        "importantQuestions": "Important Questions",
        "relatedQuestions": "Related Questions",
    },
    "cn": {
        "greeting": "你好，我是 Dr.SEM，很高兴为您提供结构方程模型咨询。",
        "placeholder": "询问关于 SEM、模型拟合或寻求建议...",
        "upload": "上传文档/图片",
        "toolCanvas": "研究画布",
        "toolFit": "拟合指数检查",
        "toolApa": "APA 表格",
        "toolJamovi": "Jamovi 语法",
        "suggestion": "建议使用工具:",
        "switch": "切换",
        "importantQuestions": "重要问题",
        "relatedQuestions": "相关问题",
    },
}


def normalize_language(language: str) -> str:
    if language in TRANSLATIONS:
        return language
    return DEFAULT_LANGUAGE


def translate(language: str, key: str) -> str:
    strings = TRANSLATIONS[normalize_language(language)]
    return strings.get(key, TRANSLATIONS["en"].get(key, key))
