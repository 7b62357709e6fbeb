import os

import requests

from breeze.lib.logger import logger


def send_slack_message(text: str, channel: str = None) -> bool:
    """
    Post a message to a Slack channel with the bot token.

    Args:
        text (str): Message body.
        channel (str): Slack channel id. Falls back to SLACK_CHANNEL_ID.

    Returns:
        bool: True when Slack accepted the message.
    """
    slack_token = os.environ.get("SLACK_BOT_TOKEN")
    channel_id = channel or os.environ.get("SLACK_CHANNEL_ID")

    if not slack_token or not channel_id:
        logger.warning("Slack alert skipped: SLACK_BOT_TOKEN or channel missing")
        return False

    headers = {
        "Authorization": f"Bearer {slack_token}",
        "Content-Type": "application/json",
    }
    payload = {"channel": channel_id, "text": text}

    try:
        response = requests.post(
            "https://slack.com/api/chat.postMessage",
            headers=headers,
            json=payload,
            timeout=10,
        )
        data = response.json()
        if response.status_code == 200 and data.get("ok"):
            return True
        logger.warning(f"Slack message rejected: {data.get('error')}")
        return False
    except requests.RequestException as e:
        logger.error(f"Error sending Slack message: {str(e)}")
        return False
