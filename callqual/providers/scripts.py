"""Scripted dialogues used by the synthetic transcription provider."""

DialogueScript = list[tuple[str, str]]

LEAD_QUALIFICATION: DialogueScript = [
    ("AGENT", "Good morning, this is Sarah from CallQualify AI. Am I speaking with John?"),
    ("CUSTOMER", "Yes, this is John speaking."),
    ("AGENT", "Great! I'm calling regarding your inquiry about our lead qualification service. Do you have a few minutes to discuss?"),
    ("CUSTOMER", "Sure, I have some time."),
    ("AGENT", "Perfect. As required by law, I need to inform you that this call is being recorded for quality and training purposes. Are you comfortable continuing?"),
    ("CUSTOMER", "Yes, that's fine."),
    ("AGENT", "Excellent. So our AI-powered system can help you automatically transcribe and qualify your sales calls. The main benefit is saving your team hours of manual work."),
    ("CUSTOMER", "That sounds interesting. How does it work exactly?"),
    ("AGENT", "Our system uses advanced AI to transcribe calls in real-time, then automatically checks them against your qualification criteria. For example, we verify proper disclosures, product mentions, and compliance requirements."),
    ("CUSTOMER", "I see. What's the pricing like?"),
    ("AGENT", "We offer flexible pricing starting at $99 per month for up to 100 calls. Would you like me to send over our detailed pricing sheet?"),
    ("CUSTOMER", "Yes, please send that over. I'll discuss with my team."),
    ("AGENT", "Perfect! I'll email that to you right away. Is there anything else I can help clarify?"),
    ("CUSTOMER", "No, that covers it for now. Thanks!"),
    ("AGENT", "Great! Thank you for your time, John. Have a wonderful day!"),
]

PRODUCT_DEMO: DialogueScript = [
    ("AGENT", "Hi, this is Michael from CallQualify. How are you today?"),
    ("CUSTOMER", "I'm doing well, thanks."),
    ("AGENT", "Wonderful! I'm calling to follow up on your demo request. This call will be recorded for quality purposes."),
    ("CUSTOMER", "Okay, sounds good."),
    ("AGENT", "So you mentioned you're currently handling about 200 sales calls per week. Is that correct?"),
    ("CUSTOMER", "Yes, that's right. We're struggling to review them all."),
    ("AGENT", "That's exactly the problem we solve. Our CallQualify platform can automatically transcribe and analyze all those calls, checking for quality metrics and compliance."),
    ("CUSTOMER", "What kind of metrics do you track?"),
    ("AGENT", "We track everything from proper greetings, mandatory disclosures, product mentions, objection handling, and closing techniques. Plus, you can create custom rules."),
    ("CUSTOMER", "Custom rules would be really helpful for our specific process."),
    ("AGENT", "Absolutely! Our rule engine is very flexible. Would you like to schedule a technical demo with our team?"),
    ("CUSTOMER", "Yes, I'd like that."),
    ("AGENT", "Perfect! I'll have our solutions engineer reach out to set that up. Anything else?"),
    ("CUSTOMER", "No, that's all for now."),
    ("AGENT", "Great chatting with you. Talk soon!"),
]

SUPPORT_INQUIRY: DialogueScript = [
    ("AGENT", "Thank you for calling CallQualify support. This is Lisa. How can I help you today?"),
    ("CUSTOMER", "Hi, I'm having trouble uploading audio files to the system."),
    ("AGENT", "I'm sorry to hear that. This call is being recorded. Let me help you troubleshoot. What error are you seeing?"),
    ("CUSTOMER", "It says the file format is not supported."),
    ("AGENT", "Got it. Our system currently supports MP3, WAV, and M4A formats. What format is your file?"),
    ("CUSTOMER", "Oh, it's a WMA file."),
    ("AGENT", "That explains it. WMA files aren't supported yet, but you can easily convert them using free tools like Audacity. Would you like me to send you a quick guide?"),
    ("CUSTOMER", "Yes please, that would be helpful."),
    ("AGENT", "Perfect! I'll email that to you right away. Is there anything else I can assist with?"),
    ("CUSTOMER", "No, that should do it. Thanks!"),
    ("AGENT", "You're welcome! Have a great day!"),
]

DEFAULT_SCRIPTS: tuple[DialogueScript, ...] = (LEAD_QUALIFICATION, PRODUCT_DEMO, SUPPORT_INQUIRY)
