from autoflow.domain.prompt_store import PromptStore
from autoflow.llm.base import LLMClient, LLMRequest
from autoflow.observability.tracing import log_event
from autoflow.runtime.renderer import PromptRenderer

_DEFAULT_INSTRUCTIONS: dict[str, str] = {
    "slack": (
        "1. Go to https://api.slack.com/apps\n2. Click \"Create New App\"\n3. Choose \"From scratch\"\n"
        "4. Enter app name and select your workspace\n5. Go to \"OAuth & Permissions\"\n"
        "6. Add Bot Token Scopes (chat:write, channels:read, etc.)\n7. Install to workspace\n"
        "8. Copy \"Bot User OAuth Token\" (starts with xoxb-)\n9. Paste it in the API key field"
    ),
    "github": (
        "1. Visit https://github.com/settings/tokens\n2. Click \"Generate new token\"\n"
        "3. Select \"Personal access tokens (classic)\"\n4. Give it a name (e.g., \"Automation\")\n"
        "5. Select scopes:\n   - repo (full control)\n   - workflow (workflow actions)\n   - read:user (user data)\n"
        "6. Click \"Generate token\"\n7. Copy token immediately (won't show again)"
    ),
    "stripe": (
        "1. Go to https://dashboard.stripe.com\n2. Log in to your Stripe account\n"
        "3. Click \"Developers\" in left menu\n4. Go to \"API Keys\"\n"
        "5. You'll see \"Publishable key\" and \"Secret key\"\n6. Click \"Reveal live key\" or \"Reveal test key\"\n"
        "7. Copy the \"Secret key\" (starts with sk_live_ or sk_test_)\n"
        "8. Test keys are for development, live keys for production"
    ),
    "openai": (
        "1. Go to https://platform.openai.com/api-keys\n2. Log in to your OpenAI account\n"
        "3. Click \"Create new secret key\"\n4. Give it a descriptive name (optional)\n"
        "5. Click \"Create secret key\"\n6. Copy the key immediately (won't show again)\n"
        "7. Organization ID is optional (Settings > Organization)"
    ),
    "airtable": (
        "1. Go to https://airtable.com/account/tokens\n2. Click \"Create new token\"\n"
        "3. Name it (e.g., \"Automation Token\")\n4. Under \"Scopes\", select:\n   - data.records:read\n"
        "   - data.records:write\n   - schema.bases:read\n5. Under \"Bases\", select which bases can access\n"
        "6. Click \"Create token\" and copy it"
    ),
    "notion": (
        "1. Go to https://www.notion.so/my-integrations\n2. Click \"Create new integration\"\n"
        "3. Name your integration\n4. Select the workspace it belongs to\n5. Go to \"Secrets\" tab\n"
        "6. Copy \"Internal Integration Token\""
    ),
    "google_sheets": (
        "1. Go to https://console.cloud.google.com\n2. Create a new project or select existing\n"
        "3. Search and enable \"Google Sheets API\"\n4. Go to \"Credentials\"\n"
        "5. Click \"Create Credentials\" > \"API Key\"\n6. Copy the API Key\n7. Or use OAuth2 for more security"
    ),
    "shopify": (
        "1. Go to your Shopify Admin (admin.shopify.com)\n2. Navigate to Settings > Apps and integrations\n"
        "3. Click \"Develop apps\"\n4. Click \"Create app\"\n5. Name your app\n6. Go to \"Configuration\" tab\n"
        "7. Under Admin API scopes, select needed scopes\n8. Click \"Save\"\n"
        "9. Go to \"API credentials\" and copy \"Access Token\""
    ),
    "mailchimp": (
        "1. Log in to Mailchimp (mailchimp.com)\n2. Click your profile icon\n"
        "3. Select \"Account\" > \"Extras\" > \"API Keys\"\n4. Click \"Create A Key\"\n"
        "5. Copy the API key (format: xxxxxxxxxxxxxxxxxxxxxxxx-us1)\n6. The \"-us1\" part is your datacenter\n"
        "7. Keep this secret!"
    ),
    "twilio": (
        "1. Go to https://www.twilio.com/console\n2. Log in to Twilio Console\n"
        "3. Copy your \"Account SID\" (shown on dashboard)\n4. Click the eye icon to show \"Auth Token\"\n"
        "5. Copy both Account SID and Auth Token\n6. Store them securely"
    ),
    "aws": (
        "1. Log in to AWS Console\n2. Go to IAM (Identity and Access Management)\n3. Click \"Users\" in left menu\n"
        "4. Create new user or select existing\n5. Go to \"Security credentials\" tab\n"
        "6. Click \"Create access key\"\n7. Copy \"Access Key ID\" and \"Secret Access Key\"\n8. Save both securely"
    ),
    "discord": (
        "1. Go to https://discord.com/developers/applications\n2. Click \"New Application\"\n"
        "3. Go to \"Bot\" section\n4. Click \"Add Bot\"\n5. Under \"TOKEN\", click \"Copy\"\n"
        "6. Use this bot token (starts with MTA or NTA)\n7. Keep it secret!"
    ),
    "twitter": (
        "1. Go to https://developer.twitter.com/en/portal\n2. Create/select your app\n"
        "3. Go to \"Keys and tokens\"\n4. Generate \"API Key\" and \"API Secret\"\n"
        "5. Create \"Bearer Token\"\n6. Copy all three securely"
    ),
    "microsoft_teams": (
        "1. Go to https://dev.teams.microsoft.com/apps\n2. Create or select your app\n"
        "3. Go to \"Bot features\"\n4. Create a bot and copy the token from Azure Portal\n"
        "5. Go to Azure Portal > Azure AD > App registrations\n6. Copy Client ID and generate Client Secret"
    ),
    "facebook": (
        "1. Go to https://developers.facebook.com\n2. Create or select your app\n"
        "3. Go to \"Settings\" > \"Basic\"\n4. Copy \"App ID\" and \"App Secret\"\n"
        "5. Go to \"Tools\" > \"Access Token Tool\"\n6. Generate an access token for your page"
    ),
}


def get_default_instructions(service_name: str) -> str:
    instructions = _DEFAULT_INSTRUCTIONS.get(service_name.lower())
    if instructions:
        return instructions
    return (
        f"Getting API key for {service_name}:\n"
        f"1. Visit the official {service_name} website\n"
        "2. Log in to your account\n"
        "3. Find Settings, API, or Developer section\n"
        "4. Look for \"API Keys\", \"Access Tokens\", or \"Credentials\"\n"
        "5. Generate a new key if needed\n"
        "6. Copy it and paste here\n"
        "7. Keep your API key secret!"
    )


class ApiKeyAdvisor:
    """Step-by-step credential instructions, model first, built-in table second."""

    def __init__(
        self,
        *,
        llm: LLMClient | None,
        prompt_store: PromptStore,
        renderer: PromptRenderer | None = None,
        version: str = "v1",
    ) -> None:
        self._llm = llm
        self._prompt_store = prompt_store
        self._renderer = renderer or PromptRenderer()
        self._version = version

    async def instructions(self, service_name: str) -> str:
        if self._llm is None:
            return get_default_instructions(service_name)

        template = self._prompt_store.get_prompt(
            workflow="automation", module="api_key_help", version=self._version
        )
        system_prompt = self._renderer.render(template, {"service_name": service_name})
        try:
            resp = await self._llm.generate(
                LLMRequest(
                    prompt=f"How do I get an API key for {service_name}?",
                    system_prompt=system_prompt,
                    temperature=0.7,
                    max_tokens=800,
                    metadata={"module": "api_key_help", "service": service_name},
                )
            )
        except (RuntimeError, ValueError) as exc:
            log_event("api_key_help.fallback", service=service_name, error=str(exc))
            return get_default_instructions(service_name)

        text = resp.output_text.strip()
        return text or get_default_instructions(service_name)
