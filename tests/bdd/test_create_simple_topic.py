"""
Consensus Service Scenarios

Step definitions for create_simple_topic.feature: topics with a single or
threshold submit key, message publication and a bounded wait for the
published message on the topic's message stream.
"""

import asyncio

from pytest_bdd import scenarios, given, when, then, parsers

from hedera_bdd.assertions import assert_hbar_above, assert_success, assert_valid_entity_id
from hedera_bdd.config import TestConfig
from hedera_bdd.subscription import await_matching_message, expect_message

scenarios("features/create_simple_topic.feature")


@given(parsers.re(r"^a first account with more than (?P<hbars>\d+) hbars$"), converters={"hbars": int})
def first_account(ledger, use_account, hbars):
    account = use_account("first", operator=True)
    assert_hbar_above(ledger.get_hbar_balance(account.account_id), hbars, account.account_id)


@given(parsers.re(r"^A second account with more than (?P<hbars>\d+) hbars$"), converters={"hbars": int})
def second_account(ledger, use_account, hbars):
    account = use_account("second")
    assert_hbar_above(ledger.get_hbar_balance(account.account_id), hbars, account.account_id)


@given(
    parsers.re(r"^A (?P<required>\d+) of (?P<total>\d+) threshold key with the first and second account$"),
    converters={"required": int, "total": int},
)
def threshold_key(ledger, context, required, total):
    signers = [context.account("first"), context.account("second")]
    assert total == len(signers), f"Threshold key lists {len(signers)} keys, scenario expects {total}"
    context.threshold_key = ledger.threshold_key([account.public_key for account in signers], required)
    context.threshold_signers = signers


@when(parsers.re(
    r'^A topic is created with the memo "(?P<memo>[^"]*)" with the first account as the submit key$'
))
def create_topic_with_account_key(ledger, context, memo):
    topic_id = ledger.create_topic(memo, submit_key=context.account("first").public_key)
    assert_valid_entity_id(topic_id, "Topic id")
    context.topic_id = topic_id


@when(parsers.re(
    r'^A topic is created with the memo "(?P<memo>[^"]*)" with the threshold key as the submit key$'
))
def create_topic_with_threshold_key(ledger, context, memo):
    topic_id = ledger.create_topic(
        memo,
        submit_key=context.require("threshold_key"),
        signers=context.require("threshold_signers"),
    )
    assert_valid_entity_id(topic_id, "Topic id")
    context.topic_id = topic_id


@when(parsers.re(r'^The message "(?P<message>[^"]*)" is published to the topic$'))
def publish_message(ledger, context, message):
    receipt = ledger.submit_topic_message(context.require("topic_id"), message)
    assert_success(receipt)
    context.message = message


@then(parsers.re(
    r'^The message "(?P<message>[^"]*)" is received by the topic and can be printed to the console$'
))
def message_received(context, topic_message_source, message):
    source = topic_message_source(context.require("topic_id"))
    outcome = asyncio.run(await_matching_message(source, message, TestConfig.MESSAGE_TIMEOUT))
    received = expect_message(outcome)
    print(f"Message received from topic ==> {received}")
